"""Tests for :class:`singkeys.key_state.KeyEventStateMachine`."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from singkeys.constants import HOLD_THRESHOLD, REPEAT_INTERVAL  # noqa: E402
from singkeys.key_state import (  # noqa: E402
    ActionKind,
    KeyAction,
    KeyEventStateMachine,
    KeyState,
)
from singkeys.pitch_map import Symbol  # noqa: E402

# Power-of-two tick keeps clock arithmetic exact in binary floating point.
TICK = 1.0 / 128


def _feed(machine, state, symbols_at):
    """Feed ``(time, symbol)`` pairs and collect ``(time, action)`` pairs."""
    emitted = []
    for now, symbol in symbols_at:
        action = machine.update(state, symbol, now)
        if action is not None:
            emitted.append((now, action))
    return emitted


def _sustain(symbol, duration):
    ticks = 0
    while ticks * TICK < duration:
        yield ticks * TICK, symbol
        ticks += 1


def test_idle_with_no_symbol_emits_nothing() -> None:
    machine = KeyEventStateMachine()
    state = KeyState()
    assert machine.update(state, None, 0.0) is None
    assert state.is_idle
    assert state.hold_start is None and state.last_repeat_emit is None


def test_first_symbol_is_pressed_and_marks_time() -> None:
    machine = KeyEventStateMachine()
    state = KeyState()
    action = machine.update(state, Symbol.UP, 1.5)
    assert action == KeyAction(ActionKind.PRESS, Symbol.UP)
    assert state.active_symbol is Symbol.UP
    assert state.hold_start == 1.5
    assert state.last_repeat_emit == 1.5


def test_sustain_below_hold_threshold_presses_once() -> None:
    machine = KeyEventStateMachine()
    state = KeyState()
    emitted = _feed(machine, state, _sustain(Symbol.LEFT, HOLD_THRESHOLD))
    assert [a for _, a in emitted] == [KeyAction(ActionKind.PRESS, Symbol.LEFT)]


def test_repeat_cadence_after_hold_threshold() -> None:
    machine = KeyEventStateMachine()
    state = KeyState()
    duration = HOLD_THRESHOLD + 3 * REPEAT_INTERVAL
    emitted = _feed(machine, state, _sustain(Symbol.SYM_A, duration))

    kinds = [a.kind for _, a in emitted]
    assert kinds == [ActionKind.PRESS] + [ActionKind.REPEAT] * 3
    assert all(a.symbol is Symbol.SYM_A for _, a in emitted)

    times = [t for t, _ in emitted]
    assert times[1] - times[0] >= HOLD_THRESHOLD
    for earlier, later in zip(times[1:], times[2:]):
        assert later - earlier >= REPEAT_INTERVAL


def test_repeat_without_previous_emit_mark_fires_immediately() -> None:
    machine = KeyEventStateMachine()
    state = KeyState(active_symbol=Symbol.DOWN, hold_start=0.0)
    action = machine.update(state, Symbol.DOWN, HOLD_THRESHOLD)
    assert action == KeyAction(ActionKind.REPEAT, Symbol.DOWN)
    assert state.last_repeat_emit == HOLD_THRESHOLD


def test_switch_symbols_without_release() -> None:
    machine = KeyEventStateMachine()
    state = KeyState()
    emitted = _feed(machine, state, [(0.0, Symbol.SYM_Z), (TICK, Symbol.SYM_X)])
    assert [a for _, a in emitted] == [
        KeyAction(ActionKind.PRESS, Symbol.SYM_Z),
        KeyAction(ActionKind.PRESS, Symbol.SYM_X),
    ]
    assert state.active_symbol is Symbol.SYM_X
    assert state.hold_start == TICK


def test_switch_restarts_hold_timer() -> None:
    machine = KeyEventStateMachine()
    state = KeyState()
    machine.update(state, Symbol.LEFT, 0.0)
    machine.update(state, Symbol.RIGHT, 1.0)
    # 0.125s into the new note: still within the hold threshold
    assert machine.update(state, Symbol.RIGHT, 1.125) is None


def test_silence_releases_and_returns_to_idle() -> None:
    machine = KeyEventStateMachine()
    state = KeyState()
    emitted = _feed(machine, state, [(0.0, Symbol.CONFIRM), (TICK, None)])
    assert [a for _, a in emitted] == [
        KeyAction(ActionKind.PRESS, Symbol.CONFIRM),
        KeyAction(ActionKind.RELEASE, Symbol.CONFIRM),
    ]
    assert state.is_idle
    assert state.hold_start is None
    assert state.last_repeat_emit is None


def test_release_does_not_inject() -> None:
    assert KeyAction(ActionKind.PRESS, Symbol.UP).injects
    assert KeyAction(ActionKind.REPEAT, Symbol.UP).injects
    assert not KeyAction(ActionKind.RELEASE, Symbol.UP).injects


def test_custom_policy() -> None:
    machine = KeyEventStateMachine(hold_threshold=0.5, repeat_interval=0.25)
    state = KeyState()
    emitted = _feed(machine, state, _sustain(Symbol.UP, 1.0))
    kinds = [a.kind for _, a in emitted]
    # repeats at 0.5 and 0.75, the next would be at 1.0
    assert kinds == [ActionKind.PRESS, ActionKind.REPEAT, ActionKind.REPEAT]
