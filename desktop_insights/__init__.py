"""
Desktop Insights

Named telemetry clients for desktop applications, wired into
unhandled-exception and application-exit hooks.
"""

from .errors import TelemetryError, DuplicateNameError, DuplicateKeyError, NotFoundError
from .hooks import ApplicationEvents
from .initializer import EnvironmentSnapshot, TelemetryInitializer, capture_environment
from .registry import TelemetryRegistry
from .telemetry import SeverityLevel, TelemetryClient, TelemetryItem, log_handled_exception

__all__ = [
    'ApplicationEvents',
    'DuplicateKeyError',
    'DuplicateNameError',
    'EnvironmentSnapshot',
    'NotFoundError',
    'SeverityLevel',
    'TelemetryClient',
    'TelemetryError',
    'TelemetryInitializer',
    'TelemetryItem',
    'TelemetryRegistry',
    'capture_environment',
    'log_handled_exception',
]
