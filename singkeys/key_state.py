"""
Debounce, hold and auto-repeat logic for detected symbols.

Each processed analysis window yields at most one classified symbol.
:class:`KeyEventStateMachine` turns that stream into discrete actions:

* a new symbol (from idle, or different from the one held) is pressed
  once straight away,
* a symbol sustained for ``hold_threshold`` seconds starts repeating,
  at most once every ``repeat_interval`` seconds,
* losing the pitch releases the held symbol.

Switching directly from one symbol to another emits only the new press;
a release is reported only when the signal drops to no symbol at all.

The mutable timing marks live in a :class:`KeyState` owned by the
caller.  The machine itself is stateless apart from its two policy
constants, so one instance can be shared and tested in isolation.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .constants import HOLD_THRESHOLD, REPEAT_INTERVAL
from .pitch_map import Symbol

logger = logging.getLogger(__name__)


class ActionKind(enum.Enum):
    PRESS = "press"
    REPEAT = "repeat"
    RELEASE = "release"


@dataclass(frozen=True)
class KeyAction:
    """A single action emitted by the state machine."""

    kind: ActionKind
    symbol: Symbol

    @property
    def injects(self) -> bool:
        """``True`` when the action should reach the key injector."""
        return self.kind is not ActionKind.RELEASE


@dataclass
class KeyState:
    """Currently held symbol and its timing marks.

    Attributes:
        active_symbol: Symbol considered held, or ``None`` when idle.
        hold_start: Clock reading when ``active_symbol`` became active.
        last_repeat_emit: Clock reading of the last press or repeat
            emitted for ``active_symbol``.
    """

    active_symbol: Optional[Symbol] = None
    hold_start: Optional[float] = None
    last_repeat_emit: Optional[float] = None

    @property
    def is_idle(self) -> bool:
        return self.active_symbol is None

    def reset(self) -> None:
        self.active_symbol = None
        self.hold_start = None
        self.last_repeat_emit = None


class KeyEventStateMachine:
    """Decide which action, if any, a new classification produces.

    Args:
        hold_threshold: Seconds a symbol must be held before repeats
            begin.
        repeat_interval: Minimum seconds between consecutive repeats.
    """

    def __init__(
        self,
        hold_threshold: float = HOLD_THRESHOLD,
        repeat_interval: float = REPEAT_INTERVAL,
    ) -> None:
        self.hold_threshold = hold_threshold
        self.repeat_interval = repeat_interval

    def update(
        self, state: KeyState, new_symbol: Optional[Symbol], now: float
    ) -> Optional[KeyAction]:
        """Apply one classification to ``state`` and return the action.

        Args:
            state: Key state to read and mutate in place.
            new_symbol: Classifier output for the latest window.
            now: Current monotonic clock reading in seconds.

        Returns:
            The emitted :class:`KeyAction`, or ``None`` when nothing
            should happen.
        """
        active = state.active_symbol

        if new_symbol is not None and new_symbol == active:
            return self._sustain(state, active, now)

        if new_symbol is not None:
            logger.info(
                "Action: New key '%s' detected. Sending initial press!",
                new_symbol.name,
            )
            state.active_symbol = new_symbol
            state.hold_start = now
            state.last_repeat_emit = now
            return KeyAction(ActionKind.PRESS, new_symbol)

        if active is not None:
            logger.info("Info: Pitch lost. Releasing key '%s' state.", active.name)
            state.reset()
            return KeyAction(ActionKind.RELEASE, active)

        return None

    def _sustain(
        self, state: KeyState, active: Symbol, now: float
    ) -> Optional[KeyAction]:
        if state.hold_start is None:
            # Held without a start mark: treat as freshly held.
            state.hold_start = now
        held_for = now - state.hold_start
        if held_for < self.hold_threshold:
            logger.debug(
                "Info: Key '%s' held, but still within hold threshold (%dms remaining).",
                active.name,
                int((self.hold_threshold - held_for) * 1000),
            )
            return None
        last = state.last_repeat_emit
        if last is not None and now - last < self.repeat_interval:
            return None
        logger.info("Action: Repeating key '%s' (held).", active.name)
        state.last_repeat_emit = now
        return KeyAction(ActionKind.REPEAT, active)


__all__ = ["ActionKind", "KeyAction", "KeyState", "KeyEventStateMachine"]
