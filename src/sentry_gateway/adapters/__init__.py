"""Host adapters that feed runtime errors and log batches to the gateway."""

from .base import GatewayAdapter
from .error_handler import ErrorHandlerAdapter, severity_for_warning
from .log_route import LogRouteAdapter, LogRouteHandler, format_log_time

__all__ = [
    "GatewayAdapter",
    "ErrorHandlerAdapter",
    "severity_for_warning",
    "LogRouteAdapter",
    "LogRouteHandler",
    "format_log_time",
]
