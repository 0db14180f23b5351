"""Assemble capture, estimator, key sender and analysis loop from a config."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .analysis_loop import AnalysisLoop
from .capture import AudioCapture, InputDevice, resolve_input_device
from .config import PipelineConfig
from .frame_buffer import AudioFrameBuffer
from .key_sender import KeySender
from .key_state import KeyAction
from .pitch_detector import PitchEstimate, PitchEstimator

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    device: InputDevice
    buffer: AudioFrameBuffer
    capture: AudioCapture
    estimator: PitchEstimator
    sender: KeySender
    loop: AnalysisLoop


def build_pipeline(
    config: PipelineConfig,
    *,
    sender: Optional[KeySender] = None,
    on_action: Optional[Callable[[KeyAction], None]] = None,
    on_pitch: Optional[Callable[[PitchEstimate], None]] = None,
) -> Pipeline:
    """Wire every component for ``config``.  The stream is not started.

    Raises:
        AudioDeviceError: If no usable input device is found.
    """
    device = resolve_input_device(config.device)
    if config.sample_rate:
        device = InputDevice(
            index=device.index,
            name=device.name,
            sample_rate=config.sample_rate,
            channels=device.channels,
        )
    logger.info("Found input device: %s", device.name)
    logger.info(
        "Using input stream config: %d Hz, %d channel(s), %d-sample windows",
        device.sample_rate,
        min(config.channels, device.channels),
        config.window_size,
    )

    buffer = AudioFrameBuffer(max_backlog=config.max_backlog)
    capture = AudioCapture(buffer, device, channels=config.channels)
    estimator = PitchEstimator(
        sample_rate=device.sample_rate,
        window_size=config.window_size,
        power_threshold=config.power_threshold,
        clarity_threshold=config.clarity_threshold,
        method=config.detection_method,
    )
    if sender is None:
        sender = KeySender(send_enabled=config.send_enabled)
    loop = AnalysisLoop(
        buffer,
        estimator,
        sender,
        window_size=config.window_size,
        poll_interval=config.poll_interval,
        on_action=on_action,
        on_pitch=on_pitch,
    )
    return Pipeline(device, buffer, capture, estimator, sender, loop)


__all__ = ["Pipeline", "build_pipeline"]
