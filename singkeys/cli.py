"""Command line entry point: sing into the microphone, get key clicks."""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import Optional

import click

from .config import PipelineConfig, load_config
from .errors import SingKeysError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a console handler."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    set_log_level(level)


def set_log_level(level: str) -> None:
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


def _parse_device(value: Optional[str]):
    if value is None:
        return None
    return int(value) if value.isdigit() else value


def _list_devices() -> None:
    from .capture import list_input_devices

    for dev in list_input_devices():
        click.echo(f"{dev.index}: {dev.name} ({dev.channels} ch, {dev.sample_rate} Hz)")


def run_pipeline(config: PipelineConfig) -> None:
    """Build the pipeline for ``config`` and run it until interrupted."""
    from .pipeline import build_pipeline

    logger.info("Starting up pitch-to-key program...")
    pipeline = build_pipeline(config)
    with pipeline.capture:
        logger.info("Listening for pitch... (sing into your mic)")
        logger.info("Ensure the target application is the active window.")
        if not config.send_enabled:
            logger.info("Dry run: keys are detected but not sent.")
        logger.info("---")
        try:
            pipeline.loop.run()
        except KeyboardInterrupt:
            logger.info("Exiting.")


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="YAML settings file (default: per-user config.yaml).",
)
@click.option("--device", help="Input device index or name.")
@click.option("--sample-rate", type=int, help="Override the device sample rate.")
@click.option("--method", "detection_method", help="Aubio pitch method, or 'fft'.")
@click.option("--power-threshold", type=float, help="Minimum window power.")
@click.option(
    "--clarity-threshold",
    type=click.FloatRange(0.0, 1.0),
    help="Minimum pitch clarity (0-1).",
)
@click.option(
    "--max-backlog",
    type=click.IntRange(min=1),
    help="Drop the oldest samples beyond this many queued.",
)
@click.option("--dry-run", is_flag=True, help="Detect and log, but send no keys.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Console log level.",
)
@click.option("--list-devices", is_flag=True, help="List input devices and exit.")
@click.option(
    "--setup-uinput",
    is_flag=True,
    help="Grant this user access to /dev/uinput (asks for root) and exit.",
)
def main(
    config_path: Optional[str],
    device: Optional[str],
    sample_rate: Optional[int],
    detection_method: Optional[str],
    power_threshold: Optional[float],
    clarity_threshold: Optional[float],
    max_backlog: Optional[int],
    dry_run: bool,
    log_level: Optional[str],
    list_devices: bool,
    setup_uinput: bool,
) -> None:
    """Turn sung notes into key presses."""
    setup_logging()
    try:
        config = load_config(config_path)
        config = config.with_overrides(
            device=_parse_device(device),
            sample_rate=sample_rate,
            detection_method=detection_method,
            power_threshold=power_threshold,
            clarity_threshold=clarity_threshold,
            max_backlog=max_backlog,
            log_level=log_level,
            send_enabled=False if dry_run else None,
        )
        set_log_level(config.log_level)

        if setup_uinput:
            from .utils import elevate_and_setup_uinput

            try:
                elevate_and_setup_uinput()
            except (subprocess.CalledProcessError, OSError) as e:
                raise click.ClickException(f"uinput setup failed: {e}") from e
            return
        if list_devices:
            _list_devices()
            return
        run_pipeline(config)
    except SingKeysError as e:
        raise click.ClickException(str(e)) from e


if __name__ == "__main__":
    main()
