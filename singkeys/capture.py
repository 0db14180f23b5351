"""
Audio capture from a PortAudio input device.

:class:`AudioCapture` opens a :class:`sounddevice.InputStream` and pushes
every block it receives into an
:class:`~singkeys.frame_buffer.AudioFrameBuffer`.  The callback runs on
PortAudio's own thread and does as little as possible: down-mix to mono
and append under the buffer lock.

Failures to find or open a device are environment errors and raise
:class:`~singkeys.errors.AudioDeviceError`.  Problems reported while the
stream runs (xruns, a device that disappears) are logged and not
recovered; the analysis loop simply stops receiving new samples.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import sounddevice as sd

from .constants import BLOCK_SIZE, SAMPLE_RATE
from .errors import AudioDeviceError
from .frame_buffer import AudioFrameBuffer

logger = logging.getLogger(__name__)

DeviceSpec = Optional[Union[int, str]]


@dataclass(frozen=True)
class InputDevice:
    """Description of a capture device as reported by PortAudio."""

    index: Optional[int]
    name: str
    sample_rate: int
    channels: int


def _to_input_device(info, fallback_index: Optional[int]) -> InputDevice:
    rate = int(info.get("default_samplerate") or 0) or SAMPLE_RATE
    return InputDevice(
        index=info.get("index", fallback_index),
        name=str(info["name"]),
        sample_rate=rate,
        channels=int(info["max_input_channels"]),
    )


def list_input_devices() -> list[InputDevice]:
    """Return every device with at least one input channel."""
    try:
        devices = sd.query_devices()
    except Exception as e:
        raise AudioDeviceError(f"Could not query audio devices: {e}") from e
    return [
        _to_input_device(dev, idx)
        for idx, dev in enumerate(devices)
        if dev["max_input_channels"] > 0
    ]


def resolve_input_device(device: DeviceSpec = None) -> InputDevice:
    """Look up ``device`` (or the default input device).

    Raises:
        AudioDeviceError: No input device is available, the query fails,
            or the named device has no input channels.
    """
    try:
        info = sd.query_devices(device, kind="input")
    except Exception as e:
        raise AudioDeviceError(
            "No input device available. Please ensure a microphone is "
            f"connected and recognized by your system. ({e})"
        ) from e
    if not info or info["max_input_channels"] <= 0:
        raise AudioDeviceError(f"Device {device!r} has no input channels")
    fallback = device if isinstance(device, int) else None
    return _to_input_device(info, fallback)


class AudioCapture:
    """Capture mono float32 samples into ``buffer``.

    Args:
        buffer: Destination queue for captured samples.
        device: Device to open.  Use :func:`resolve_input_device` to
            obtain one.
        channels: Number of channels to capture.  Multi-channel input is
            averaged down to mono.
        block_size: Frames per callback.  Zero lets PortAudio choose.
    """

    def __init__(
        self,
        buffer: AudioFrameBuffer,
        device: InputDevice,
        channels: int = 1,
        block_size: int = BLOCK_SIZE,
    ) -> None:
        self.buffer = buffer
        self.device = device
        self.channels = max(1, min(channels, device.channels))
        self.block_size = block_size
        self.stream: Optional[sd.InputStream] = None
        self._stopping = False

    @property
    def sample_rate(self) -> int:
        return self.device.sample_rate

    # -----------------------------------------------------------------
    def _callback(self, indata: np.ndarray, frames: int, _time, status) -> None:
        """Down-mix ``indata`` to mono and append it to the buffer."""
        if status:
            logger.warning("Stream status: %s", status)
        # ``push`` makes the only copy; PortAudio reuses ``indata``
        if indata.ndim == 2 and indata.shape[1] > 1:
            samples = indata.mean(axis=1, dtype=np.float32)
        else:
            samples = indata.reshape(-1)
        self.buffer.push(samples)

    def _finished(self) -> None:
        if not self._stopping:
            logger.error(
                "Stream error: capture from '%s' stopped unexpectedly; "
                "no further audio will be received",
                self.device.name,
            )

    # -----------------------------------------------------------------
    def start(self) -> None:
        """Open and start the input stream.

        Raises:
            AudioDeviceError: If PortAudio cannot build or start the stream.
        """
        logger.info("Building audio input stream...")
        self._stopping = False
        try:
            self.stream = sd.InputStream(
                device=self.device.index,
                channels=self.channels,
                samplerate=self.device.sample_rate,
                blocksize=self.block_size,
                dtype="float32",
                callback=self._callback,
                finished_callback=self._finished,
            )
            self.stream.start()
        except Exception as e:
            self.stream = None
            raise AudioDeviceError(
                f"Could not open input stream on '{self.device.name}': {e}"
            ) from e
        logger.info("Successfully started audio stream!")

    def stop(self) -> None:
        """Stop and close the stream if it is open."""
        if self.stream is None:
            return
        self._stopping = True
        try:
            self.stream.stop()
        finally:
            self.stream.close()
            self.stream = None

    def __enter__(self) -> "AudioCapture":
        self.start()
        return self

    def __exit__(self, *_) -> None:
        self.stop()


__all__ = [
    "AudioCapture",
    "InputDevice",
    "list_input_devices",
    "resolve_input_device",
]
