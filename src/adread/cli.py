"""Command line interface for the adread package."""
from __future__ import annotations

import logging
import math
import os
import re
import sys
from pathlib import Path
from typing import Optional, TextIO

import typer

from .config import AdcConfig, dump_config, load_config
from .drivers import DEFAULT_RESOLUTION, IIO_ROOT, MODE_SINGLE_ENDED, AdcDriver, open_adc
from .errors import AdreadError, SinkError
from .sampler import SETTLE_SEC, Sampler, SamplerThread
from .shutdown import ShutdownController, run_until_stopped
from .writer import RecordWriter

logger = logging.getLogger(__name__)

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """
    Parse a duration such as ``250ms``, ``1s``, ``1m30s`` or a bare number of
    seconds. Returns seconds; the value must be positive.
    """
    raw = text.strip()
    if not raw:
        raise ValueError("Empty duration")
    try:
        seconds = float(raw)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(raw):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos != len(raw) or pos == 0:
            raise ValueError(f"Invalid duration '{text}'") from None
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"Duration must be positive, got '{text}'")
    return seconds


def acquire(
    config: AdcConfig,
    driver: AdcDriver,
    sink: TextIO,
    interval: float,
    controller: ShutdownController,
    settle: float = SETTLE_SEC,
    join_timeout: Optional[float] = None,
) -> Sampler:
    """Sample until ``controller`` is stopped; fatal errors propagate."""
    writer = RecordWriter(sink)
    sampler = Sampler(config, driver, writer, interval, settle=settle)
    thread = SamplerThread(sampler, controller.event)
    run_until_stopped(thread, controller, join_timeout=join_timeout)
    return sampler


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"Unknown log level '{level}'", param_hint="--log-level")
    # stdout carries the data stream
    logging.basicConfig(
        level=numeric,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _silence_stdout() -> None:
    # Python flushes stdout again at exit; point it at devnull so a closed
    # pipe does not produce a second traceback.
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError):
        pass


app = typer.Typer(
    add_completion=False,
    help="Sample A/D channels and write calibrated CSV records to stdout.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command()
def run(
    cfgfile: Optional[Path] = typer.Argument(
        None, help="YAML channel configuration. The built-in default is used when omitted."
    ),
    interval: str = typer.Option("1s", "--interval", help="A/D sampling interval, e.g. 500ms, 1s, 1m30s."),
    ts4800: bool = typer.Option(False, "--ts4800", help="Configure for TS-4800 CPU board."),
    iio_root: Path = typer.Option(IIO_ROOT, "--iio-root", help="Root of the IIO sysfs device tree."),
    iio_device: Optional[str] = typer.Option(
        None, "--iio-device", help="IIO device directory name (defaults to the board's)."
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Diagnostics level (written to stderr)."),
    show_config: bool = typer.Option(
        False, "--show-config", help="Validate the channel configuration, print it and exit."
    ),
) -> None:
    """Sample A/Ds and write to stdout until interrupted."""

    if show_config:
        _show_config(cfgfile)
        return
    _configure_logging(log_level)
    try:
        interval_sec = parse_duration(interval)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--interval") from exc

    board = "ts4800" if ts4800 else "ts4200"
    try:
        cfg = load_config(cfgfile)
        driver = open_adc(
            board,
            cfg.channel_numbers,
            resolution=DEFAULT_RESOLUTION,
            mode=MODE_SINGLE_ENDED,
            root=iio_root,
            device=iio_device,
        )
        try:
            with ShutdownController() as controller:
                logger.info(
                    "Sampling %d channels on %s every %gs", len(cfg), board, interval_sec
                )
                sampler = acquire(cfg, driver, sys.stdout, interval_sec, controller)
        finally:
            driver.close()
    except SinkError as exc:
        logger.error("%s", exc)
        if isinstance(exc.__cause__, BrokenPipeError):
            _silence_stdout()
        raise typer.Exit(code=1) from exc
    except AdreadError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1) from exc
    logger.info("Wrote %d records", sampler.ticks)


def _show_config(cfgfile: Optional[Path]) -> None:
    try:
        cfg = load_config(cfgfile)
    except AdreadError as exc:
        typer.echo(f"Configuration FAILED: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(dump_config(cfg), nl=False)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
