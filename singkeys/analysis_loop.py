"""
AnalysisLoop — turn buffered audio into key clicks.

The loop polls the :class:`~singkeys.frame_buffer.AudioFrameBuffer` on a
fixed cadence.  Each tick drains every complete window currently queued
and, for each window in arrival order:

  * runs the pitch estimator,
  * classifies a confident estimate into a :class:`~singkeys.pitch_map.Symbol`
    (no estimate means no symbol),
  * feeds the symbol and the current clock reading to the
    :class:`~singkeys.key_state.KeyEventStateMachine`,
  * clicks the key through the injector for every press or repeat.

Releases are reported to observers but never reach the injector, since
every press is already a complete down/up click.

The buffer lock is taken only inside ``drain_front``; estimator and
injector calls always run unlocked, so a slow estimator only grows the
backlog and never stalls the capture callback.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Protocol

import numpy as np

from .constants import POLL_INTERVAL, WINDOW_SIZE
from .frame_buffer import AudioFrameBuffer
from .key_state import KeyAction, KeyEventStateMachine, KeyState
from .pitch_detector import PitchEstimate
from .pitch_map import Symbol, classify

logger = logging.getLogger(__name__)


class Injector(Protocol):
    def press(self, symbol: Symbol) -> None: ...


Estimator = Callable[[np.ndarray], Optional[PitchEstimate]]
Classifier = Callable[[float], Optional[Symbol]]


class AnalysisLoop:
    """Single-threaded consumer that drives the key state machine.

    Args:
        buffer: Sample queue filled by the capture callback.
        estimator: Callable returning a :class:`PitchEstimate` or ``None``
            for one window.
        injector: Object with a ``press(symbol)`` method.
        classifier: Frequency to symbol mapping.  Defaults to
            :func:`~singkeys.pitch_map.classify`.
        machine: State machine applying the hold/repeat policy.
        state: Key state owned by this loop.  A fresh idle state is
            created when omitted.
        window_size: Samples per analysis window.
        poll_interval: Seconds to sleep between ticks.
        clock: Monotonic clock returning seconds.
        sleep: Function used to wait between ticks.
        on_action: Optional observer called with every emitted action.
        on_pitch: Optional observer called with every confident estimate.
    """

    def __init__(
        self,
        buffer: AudioFrameBuffer,
        estimator: Estimator,
        injector: Injector,
        *,
        classifier: Classifier = classify,
        machine: Optional[KeyEventStateMachine] = None,
        state: Optional[KeyState] = None,
        window_size: int = WINDOW_SIZE,
        poll_interval: float = POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        on_action: Optional[Callable[[KeyAction], None]] = None,
        on_pitch: Optional[Callable[[PitchEstimate], None]] = None,
    ) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        if buffer.max_backlog is not None and buffer.max_backlog < window_size:
            raise ValueError(
                f"buffer backlog cap {buffer.max_backlog} cannot hold a "
                f"{window_size}-sample window"
            )
        self.buffer = buffer
        self.estimator = estimator
        self.injector = injector
        self.classifier = classifier
        self.machine = machine if machine is not None else KeyEventStateMachine()
        self.state = state if state is not None else KeyState()
        self.window_size = window_size
        self.poll_interval = poll_interval
        self.clock = clock
        self.sleep = sleep
        self.on_action = on_action
        self.on_pitch = on_pitch

    # -----------------------------------------------------------------
    def process_window(self, window: np.ndarray) -> Optional[KeyAction]:
        """Run one window through estimator, classifier and state machine."""
        new_symbol: Optional[Symbol] = None
        estimate = self.estimator(window)
        if estimate is not None:
            logger.info(
                "Input: Detected pitch = %.2f Hz (Clarity: %.2f)",
                estimate.frequency,
                estimate.clarity,
            )
            if self.on_pitch is not None:
                self.on_pitch(estimate)
            new_symbol = self.classifier(estimate.frequency)
        else:
            logger.debug("Input: No clear pitch detected in this audio segment.")

        action = self.machine.update(self.state, new_symbol, self.clock())
        if action is None:
            return None
        if action.injects:
            self.injector.press(action.symbol)
        if self.on_action is not None:
            self.on_action(action)
        return action

    def tick(self) -> list[KeyAction]:
        """Process every complete window currently buffered.

        Returns:
            The actions emitted during this tick, in order.
        """
        actions: list[KeyAction] = []
        while len(self.buffer) >= self.window_size:
            window = self.buffer.drain_front(self.window_size)
            action = self.process_window(window)
            if action is not None:
                actions.append(action)
        return actions

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Tick and sleep until ``stop_event`` is set.

        Without a stop event the loop runs until the process exits.
        Exceptions raised by the estimator or injector propagate.
        """
        logger.debug(
            "Analysis loop started (window %d samples, poll %.3fs)",
            self.window_size,
            self.poll_interval,
        )
        while stop_event is None or not stop_event.is_set():
            self.tick()
            self.sleep(self.poll_interval)
        logger.debug("Analysis loop stopped")


__all__ = ["AnalysisLoop", "Injector"]
