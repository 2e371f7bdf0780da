"""Error reporting gateway for Sentry."""

from .adapters import ErrorHandlerAdapter, LogRouteAdapter, LogRouteHandler
from .client import ReportingClient, SentrySdkClient
from .config import GatewaySettings, TransportOptions, get_settings, reset_settings
from .exceptions import (
    ComponentReferenceError,
    ConfigurationError,
    EventValidationError,
    GatewayError,
    TransmissionError,
)
from .gateway import Gateway, merge_extra
from .integration import Integration, install
from .models import (
    CaptureOptions,
    CaptureResult,
    CaptureStatus,
    LogBatchResult,
    LogEntry,
    NormalizedError,
    Severity,
)

__all__ = [
    "ErrorHandlerAdapter",
    "LogRouteAdapter",
    "LogRouteHandler",
    "ReportingClient",
    "SentrySdkClient",
    "GatewaySettings",
    "TransportOptions",
    "get_settings",
    "reset_settings",
    "ComponentReferenceError",
    "ConfigurationError",
    "EventValidationError",
    "GatewayError",
    "TransmissionError",
    "Gateway",
    "merge_extra",
    "Integration",
    "install",
    "CaptureOptions",
    "CaptureResult",
    "CaptureStatus",
    "LogBatchResult",
    "LogEntry",
    "NormalizedError",
    "Severity",
]
