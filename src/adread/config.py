from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from numbers import Real
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


# Default A/D channel configuration
DEFAULT_CONFIG = """
channels:
  - name: Ain3
    cnum: 3
    units: volts
    c: [0., 1.]
  - name: Ain4
    cnum: 4
    units: volts
    c: [0., 1.]
  - name: Ain5
    cnum: 5
    units: volts
    c: [0., 1.]
  - name: Ain6
    cnum: 6
    units: volts
    c: [0., 1.]
"""


def _coefficient(value: Any, where: str) -> float:
    # YAML 1.1 leaves exponent forms such as 1e-3 and 1.5e6 as strings
    if isinstance(value, bool) or not isinstance(value, (Real, str)):
        raise ConfigurationError(f"{where}.c contains non-numeric value {value!r}")
    try:
        number = float(value)
    except (OverflowError, ValueError) as exc:
        raise ConfigurationError(f"{where}.c contains non-numeric value {value!r}") from exc
    if not math.isfinite(number):
        raise ConfigurationError(f"{where}.c contains non-finite value {value!r}")
    return number


@dataclass(frozen=True)
class Channel:
    name: str
    cnum: int
    units: str
    c: Tuple[float, ...]

    @property
    def coefficients(self) -> Tuple[float, ...]:
        return self.c

    @staticmethod
    def from_mapping(data: Dict[str, Any], index: int = 0) -> "Channel":
        where = f"channels[{index}]"
        if not isinstance(data, dict):
            raise ConfigurationError(f"{where} must be a mapping")
        missing = [key for key in ("name", "cnum", "c") if key not in data]
        if missing:
            raise ConfigurationError(f"{where} requires fields {', '.join(repr(k) for k in missing)}")
        name = data["name"]
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"{where}.name must be a non-empty string")
        cnum = data["cnum"]
        # bool is an int subclass; "cnum: yes" is a typo, not channel 1
        if isinstance(cnum, bool) or not isinstance(cnum, int) or cnum < 0:
            raise ConfigurationError(f"{where}.cnum must be a non-negative integer")
        units = data.get("units", "")
        if units is None:
            units = ""
        if not isinstance(units, str):
            raise ConfigurationError(f"{where}.units must be a string")
        coeffs = data["c"]
        if not isinstance(coeffs, list) or not coeffs:
            raise ConfigurationError(f"{where}.c must be a non-empty list of numbers")
        normalized: List[float] = []
        for value in coeffs:
            normalized.append(_coefficient(value, where))
        return Channel(name=name, cnum=cnum, units=units, c=tuple(normalized))

    def as_mapping(self) -> Dict[str, Any]:
        return {"name": self.name, "cnum": self.cnum, "units": self.units, "c": list(self.c)}


@dataclass(frozen=True)
class AdcConfig:
    """Ordered, read-only channel list. Column order in the output follows it."""

    channels: Tuple[Channel, ...]

    @property
    def names(self) -> List[str]:
        return [channel.name for channel in self.channels]

    @property
    def channel_numbers(self) -> List[int]:
        return [channel.cnum for channel in self.channels]

    def __len__(self) -> int:
        return len(self.channels)


def parse_config(text: str) -> AdcConfig:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed configuration document: {exc}") from exc
    if not isinstance(data, dict) or "channels" not in data:
        raise ConfigurationError("Configuration requires a top-level 'channels' list")
    entries = data["channels"]
    if not isinstance(entries, list) or not entries:
        raise ConfigurationError("'channels' must be a non-empty list")
    channels = tuple(Channel.from_mapping(entry, index) for index, entry in enumerate(entries))
    duplicates = [name for name, count in Counter(ch.name for ch in channels).items() if count > 1]
    if duplicates:
        logger.warning("Duplicate channel names make the header ambiguous: %s", ", ".join(duplicates))
    return AdcConfig(channels=channels)


def load_config(path: Optional[Path | str] = None) -> AdcConfig:
    """
    Load the channel configuration from a YAML file, or the built-in default
    when no path is given.
    """
    if path is None:
        logger.debug("Using built-in channel configuration")
        return parse_config(DEFAULT_CONFIG)
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Cannot read configuration {config_path}: {exc}") from exc
    logger.debug("Loaded channel configuration from %s", config_path)
    return parse_config(text)


class _FlowList(list):
    pass


def _represent_flow_list(dumper: yaml.SafeDumper, data: _FlowList) -> yaml.Node:
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)


class _ConfigDumper(yaml.SafeDumper):
    pass


_ConfigDumper.add_representer(_FlowList, _represent_flow_list)


def dump_config(config: AdcConfig) -> str:
    """Render a configuration as YAML with inline coefficient lists."""
    entries = []
    for channel in config.channels:
        entry = channel.as_mapping()
        entry["c"] = _FlowList(entry["c"])
        entries.append(entry)
    return yaml.dump({"channels": entries}, Dumper=_ConfigDumper, sort_keys=False)
