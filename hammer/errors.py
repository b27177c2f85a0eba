"""Exception types raised by the load generator."""

from __future__ import annotations


class HammerError(Exception):
    """Base class for load generator errors."""


class ConfigurationError(HammerError):
    """Raised when run settings are missing or invalid."""


class AdmissionFailure(HammerError):
    """Raised when the permit pool refuses to grant a permit."""
