"""
A/D driver layer.

The sampler only needs ``read_volts(cnum)``. The concrete driver reads the
Linux IIO sysfs interface exposed by the board's A/D converter, so no memory
mapped register access is required from Python.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence

from .errors import HardwareInitError, ReadError

logger = logging.getLogger(__name__)

IIO_ROOT = Path("/sys/bus/iio/devices")
DEFAULT_RESOLUTION = 16
MODE_SINGLE_ENDED = 0
MODE_DIFFERENTIAL = 1


class AdcDriver(Protocol):
    def read_volts(self, cnum: int) -> float: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class BoardProfile:
    name: str
    description: str
    device: str
    resolutions: tuple[int, ...] = (DEFAULT_RESOLUTION,)


BOARDS: Dict[str, BoardProfile] = {
    "ts4200": BoardProfile("ts4200", "TS-4200 CPU on TS-8160 baseboard", "iio:device0", (12, 16)),
    "ts4800": BoardProfile("ts4800", "TS-4800 CPU on TS-8160 baseboard", "iio:device0", (12, 16)),
}


def _read_number(path: Path) -> float:
    return float(path.read_text(encoding="ascii").strip())


class IioAdc:
    """
    Voltage reader for one IIO device.

    For every channel the raw count, the offset and the scale (millivolts
    per count) are read from sysfs: ``volts = (raw + offset) * scale / 1000``.
    """

    def __init__(
        self,
        device_dir: Path,
        channels: Sequence[int],
        resolution: int = DEFAULT_RESOLUTION,
        mode: int = MODE_SINGLE_ENDED,
    ):
        if mode not in (MODE_SINGLE_ENDED, MODE_DIFFERENTIAL):
            raise HardwareInitError(f"Unsupported A/D mode {mode}")
        if not device_dir.is_dir():
            raise HardwareInitError(f"A/D device {device_dir} not found")
        self.device_dir = device_dir
        self.resolution = resolution
        self.mode = mode
        self._max_raw = (1 << resolution) - 1
        self._scales: Dict[int, float] = {}
        self._offsets: Dict[int, float] = {}
        for cnum in channels:
            if cnum in self._scales:
                continue
            raw_path = self._attr(cnum, "raw")
            if not raw_path.exists():
                raise HardwareInitError(f"A/D channel {cnum} not provided by {device_dir}")
            try:
                self._scales[cnum] = self._lookup(cnum, "scale", required=True)
                self._offsets[cnum] = self._lookup(cnum, "offset", required=False)
            except (OSError, ValueError) as exc:
                raise HardwareInitError(f"Cannot initialise A/D channel {cnum}: {exc}") from exc
        logger.info(
            "A/D ready on %s (%d channels, %d-bit, mode %d)",
            device_dir,
            len(self._scales),
            resolution,
            mode,
        )

    def _prefix(self, cnum: int) -> str:
        if self.mode == MODE_DIFFERENTIAL:
            return f"in_voltage{cnum}-voltage{cnum + 1}"
        return f"in_voltage{cnum}"

    def _attr(self, cnum: int, suffix: str) -> Path:
        return self.device_dir / f"{self._prefix(cnum)}_{suffix}"

    def _lookup(self, cnum: int, suffix: str, required: bool) -> float:
        # per-channel attribute first, then the shared one
        for path in (self._attr(cnum, suffix), self.device_dir / f"in_voltage_{suffix}"):
            if path.exists():
                return _read_number(path)
        if required:
            raise ValueError(f"missing in_voltage {suffix} attribute")
        return 0.0

    def read_volts(self, cnum: int) -> float:
        if cnum not in self._scales:
            raise ReadError(f"A/D channel {cnum} was not initialised")
        try:
            raw = _read_number(self._attr(cnum, "raw"))
        except (OSError, ValueError) as exc:
            raise ReadError(f"A/D read failed on channel {cnum}: {exc}") from exc
        if self.mode == MODE_SINGLE_ENDED and not 0 <= raw <= self._max_raw:
            raise ReadError(f"A/D channel {cnum} returned out-of-range count {raw:g}")
        return (raw + self._offsets[cnum]) * self._scales[cnum] / 1000.0

    def close(self) -> None:
        self._scales.clear()
        self._offsets.clear()


def open_adc(
    board: str,
    channels: Sequence[int],
    resolution: int = DEFAULT_RESOLUTION,
    mode: int = MODE_SINGLE_ENDED,
    root: Path = IIO_ROOT,
    device: Optional[str] = None,
) -> IioAdc:
    """Initialise the A/D converter of ``board`` for the given channels."""
    profile = BOARDS.get(board.lower())
    if profile is None:
        raise HardwareInitError(f"Unsupported board '{board}'. Expected one of {list(BOARDS)}")
    if resolution not in profile.resolutions:
        raise HardwareInitError(f"{profile.description} does not support {resolution}-bit samples")
    device_dir = Path(root) / (device or profile.device)
    logger.debug("Initialising %s A/D at %s", profile.description, device_dir)
    return IioAdc(device_dir, channels, resolution=resolution, mode=mode)
