"""
Fixed-interval A/D sampling with per-channel polynomial calibration.

Records are streamed as CSV: ``seconds,microseconds`` followed by one
calibrated value per configured channel, in configuration order.
"""

from importlib.metadata import PackageNotFoundError, version

from .calibration import Calibrator, evaluate
from .config import DEFAULT_CONFIG, AdcConfig, Channel, dump_config, load_config, parse_config
from .errors import AdreadError, ConfigurationError, HardwareInitError, ReadError, SinkError
from .sampler import Sampler, SamplerState, SamplerThread
from .shutdown import ShutdownController, run_until_stopped
from .timestamps import Timestamp, timestamp
from .writer import RecordWriter

try:  # pragma: no cover - fallback when package metadata missing
    __version__ = version("adread")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AdcConfig",
    "Channel",
    "DEFAULT_CONFIG",
    "dump_config",
    "load_config",
    "parse_config",
    "Calibrator",
    "evaluate",
    "AdreadError",
    "ConfigurationError",
    "HardwareInitError",
    "ReadError",
    "SinkError",
    "Sampler",
    "SamplerState",
    "SamplerThread",
    "ShutdownController",
    "run_until_stopped",
    "Timestamp",
    "timestamp",
    "RecordWriter",
]
