"""
PitchKeyWorker — run the pitch-to-key pipeline inside a Qt thread.

For embedding in a Qt application.  The worker owns a complete
:class:`~singkeys.pipeline.Pipeline` and re-emits its activity as Qt
signals so that widgets can follow along without touching the audio or
analysis threads directly.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from PySide6 import QtCore

from .config import PipelineConfig
from .key_state import ActionKind, KeyAction
from .pipeline import Pipeline, build_pipeline
from .pitch_detector import PitchEstimate


class PitchKeyWorker(QtCore.QThread):
    """Background thread for capture, pitch detection and key clicks.

    The pipeline is built in the constructor, so a missing input device
    raises :class:`~singkeys.errors.AudioDeviceError` to the caller
    before the thread starts.

    Args:
        config: Pipeline settings.
        parent: Optional Qt parent object for the thread.
        pipeline_factory: Builds the pipeline from ``config`` and the
            observer callbacks.  Defaults to
            :func:`~singkeys.pipeline.build_pipeline`.

    Signals:
        keyPressed(str): A new symbol was pressed.
        keyRepeated(str): A held symbol was auto-repeated.
        keyReleased(str): The held symbol was released.
        pitchDetected(float, float): Frequency and clarity of every
            confident estimate.
        errorOccurred(str): The stream or analysis loop failed.
    """

    keyPressed = QtCore.Signal(str)
    keyRepeated = QtCore.Signal(str)
    keyReleased = QtCore.Signal(str)
    pitchDetected = QtCore.Signal(float, float)
    errorOccurred = QtCore.Signal(str)

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        parent: Optional[QtCore.QObject] = None,
        pipeline_factory: Callable[..., Pipeline] = build_pipeline,
    ) -> None:
        super().__init__(parent)
        self.config = config if config is not None else PipelineConfig()
        self._stop_event = threading.Event()
        self.pipeline = pipeline_factory(
            self.config,
            on_action=self._on_action,
            on_pitch=self._on_pitch,
        )

    # -----------------------------------------------------------------
    def _on_action(self, action: KeyAction) -> None:
        name = action.symbol.name
        if action.kind is ActionKind.PRESS:
            self.keyPressed.emit(name)
        elif action.kind is ActionKind.REPEAT:
            self.keyRepeated.emit(name)
        else:
            self.keyReleased.emit(name)

    def _on_pitch(self, estimate: PitchEstimate) -> None:
        self.pitchDetected.emit(estimate.frequency, estimate.clarity)

    # -----------------------------------------------------------------
    def run(self) -> None:
        """Start the stream and run the analysis loop until :meth:`stop`."""
        self._stop_event.clear()
        try:
            self.pipeline.capture.start()
            self.pipeline.loop.run(self._stop_event)
        except Exception as e:
            self.errorOccurred.emit(f"ERROR: {e}")
        finally:
            self.pipeline.capture.stop()

    def stop(self) -> None:
        """Signal the loop to exit and wait for the thread to finish."""
        self._stop_event.set()
        self.wait(2000)

    def set_send_enabled(self, enabled: bool) -> None:
        """Toggle between sending keys and dry-run listening."""
        self.pipeline.sender.set_send_enabled(enabled)


__all__ = ["PitchKeyWorker"]
