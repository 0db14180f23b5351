"""YAML configuration for the pitch-to-key pipeline.

Settings are read from ``config.yaml`` in the per-user config directory
(see :func:`default_config_path`) or from an explicit path.  Every key
is optional; missing keys keep the defaults from
:mod:`singkeys.constants`.  Example::

    device: 2
    detection_method: yin
    clarity_threshold: 0.3
    max_backlog: 88200
    log_level: DEBUG

The hold threshold and repeat interval are fixed policy and cannot be
set here.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import yaml
from appdirs import user_config_dir

from . import constants
from .errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "singkeys"


@dataclass(frozen=True)
class PipelineConfig:
    """Tunable settings for capture, estimation and the analysis loop."""

    device: Optional[Union[int, str]] = None
    sample_rate: Optional[int] = None  # ``None``: use the device default
    channels: int = 1
    window_size: int = constants.WINDOW_SIZE
    power_threshold: float = constants.POWER_THRESHOLD
    clarity_threshold: float = constants.CLARITY_THRESHOLD
    detection_method: str = constants.DETECTION_METHOD
    poll_interval: float = constants.POLL_INTERVAL
    max_backlog: Optional[int] = constants.MAX_BACKLOG
    send_enabled: bool = True
    log_level: str = "INFO"

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a checked copy with every non-``None`` override applied.

        Raises:
            ConfigError: An override has the wrong type or breaks a range
                or cross-field constraint.
        """
        values = {k: v for k, v in overrides.items() if v is not None}
        return check_config(replace(self, **_validate(values)))

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def default_config_path() -> Path:
    return Path(user_config_dir(APP_NAME)) / "config.yaml"


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError(f"expected an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise TypeError(f"expected an integer, got {value!r}")
    return int(value)


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError(f"expected a number, got {value!r}")
    return float(value)


def _to_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected true or false, got {value!r}")
    return value


def _to_device(value: Any) -> Union[int, str]:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"expected a device index or name, got {value!r}")
    return value


# Field name -> coercion applied to non-``None`` values
_COERCE: dict[str, Callable[[Any], Any]] = {
    "device": _to_device,
    "sample_rate": _to_int,
    "channels": _to_int,
    "window_size": _to_int,
    "power_threshold": _to_float,
    "clarity_threshold": _to_float,
    "detection_method": str,
    "poll_interval": _to_float,
    "max_backlog": _to_int,
    "send_enabled": _to_bool,
    "log_level": str,
}

_OPTIONAL = {"device", "sample_rate", "max_backlog"}


def _validate(data: Mapping[str, Any]) -> dict[str, Any]:
    """Coerce ``data`` to the declared field types.

    Raises:
        ConfigError: A key is unknown or a value has the wrong type.
    """
    unknown = sorted(set(data) - set(_COERCE))
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for name, value in data.items():
        if value is None:
            if name not in _OPTIONAL:
                raise ConfigError(f"{name} must not be empty")
            values[name] = None
            continue
        try:
            values[name] = _COERCE[name](value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {name}: {e}") from e
    return values


def check_config(config: PipelineConfig) -> PipelineConfig:
    """Check value ranges and cross-field constraints of ``config``.

    Raises:
        ConfigError: A value is out of range, or the backlog cap could
            never hold a full analysis window.
    """
    if config.window_size <= 0:
        raise ConfigError("window_size must be positive")
    if config.channels <= 0:
        raise ConfigError("channels must be positive")
    if config.sample_rate is not None and config.sample_rate <= 0:
        raise ConfigError("sample_rate must be positive")
    if config.poll_interval < 0:
        raise ConfigError("poll_interval must not be negative")
    if not 0.0 <= config.clarity_threshold <= 1.0:
        raise ConfigError("clarity_threshold must be between 0 and 1")
    if config.max_backlog is not None and config.max_backlog < config.window_size:
        raise ConfigError(
            f"max_backlog ({config.max_backlog}) must be at least "
            f"window_size ({config.window_size})"
        )
    return config


def load_config(path: Optional[Union[str, Path]] = None) -> PipelineConfig:
    """Load a :class:`PipelineConfig` from YAML.

    Args:
        path: File to read.  When omitted the default per-user location
            is used, and a missing file there simply yields defaults.

    Raises:
        ConfigError: The explicit ``path`` does not exist, the YAML is
            invalid, the document is not a mapping, it names unknown
            settings, or a value has the wrong type or range.
    """
    explicit = path is not None
    config_file = Path(path) if explicit else default_config_path()
    if not config_file.exists():
        if explicit:
            raise ConfigError(f"Configuration file not found: {config_file}")
        return PipelineConfig()

    logger.info("Loading configuration from: %s", config_file)
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

    if data is None:
        return PipelineConfig()
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration file must contain a mapping of settings")
    return check_config(PipelineConfig(**_validate(data)))


__all__ = ["PipelineConfig", "check_config", "default_config_path", "load_config"]
