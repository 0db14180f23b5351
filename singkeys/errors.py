"""Exception types raised by singkeys."""

from __future__ import annotations


class SingKeysError(Exception):
    """Base class for all singkeys errors."""


class AudioDeviceError(SingKeysError):
    """No usable input device, or the capture stream could not be opened."""


class ConfigError(SingKeysError):
    """The configuration file is malformed or names unknown settings."""


__all__ = ["SingKeysError", "AudioDeviceError", "ConfigError"]
