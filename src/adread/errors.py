"""Fatal error kinds raised by the acquisition tool."""
from __future__ import annotations


class AdreadError(Exception):
    """Base class for every error that stops acquisition."""


class ConfigurationError(AdreadError, ValueError):
    """Channel configuration is unreadable, malformed, or invalid."""


class HardwareInitError(AdreadError, RuntimeError):
    """The A/D driver could not be initialised."""


class ReadError(AdreadError, OSError):
    """The A/D driver failed while reading a channel."""


class SinkError(AdreadError, OSError):
    """The output stream rejected a write."""
