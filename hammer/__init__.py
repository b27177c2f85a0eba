"""Continuous HTTP load generator."""

from .admission import AdmissionController, Permit
from .config import RunConfig
from .dispatch import DispatchLoop
from .errors import AdmissionFailure, ConfigurationError, HammerError
from .executor import RequestExecutor
from .output import OutputSink
from .runner import run
from .stats import StatsReporter, StatsSnapshot

__all__ = [
    "AdmissionController",
    "AdmissionFailure",
    "ConfigurationError",
    "DispatchLoop",
    "HammerError",
    "OutputSink",
    "Permit",
    "RequestExecutor",
    "RunConfig",
    "StatsReporter",
    "StatsSnapshot",
    "run",
]
