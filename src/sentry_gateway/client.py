"""Reporting client interface and its sentry-sdk implementation."""

from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

import sentry_sdk
import structlog
from sentry_sdk.utils import current_stacktrace, event_from_exception

from .config import TransportOptions
from .models import CaptureOptions
from .processors import apply_processors, strip_stacktraces

logger = structlog.get_logger(__name__)

# Host log level names mapped to Sentry event levels
SENTRY_LEVELS = {
    "trace": "debug",
    "profile": "debug",
    "debug": "debug",
    "info": "info",
    "notice": "info",
    "warning": "warning",
    "warn": "warning",
    "error": "error",
    "critical": "fatal",
    "fatal": "fatal",
}


def sentry_level(level: Optional[str], default: str = "info") -> str:
    """Map a host log level name to a Sentry level."""
    if not level:
        return default
    return SENTRY_LEVELS.get(level.lower(), default)


class ReportingClient(Protocol):
    """
    Capability that serializes and transmits events.

    Each method returns the event identifier, or None when the client
    decided not to send the event.
    """

    def capture_exception(
        self,
        exception: BaseException,
        options: CaptureOptions,
        logger_name: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Optional[str]:
        ...

    def capture_message(
        self,
        message: str,
        params: Sequence[Any],
        options: CaptureOptions,
        include_stack: bool = False,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Optional[str]:
        ...

    def capture_query(
        self, query: str, level: str = "info", engine_name: str = ""
    ) -> Optional[str]:
        ...


class SentrySdkClient:
    """
    ReportingClient backed by a dedicated ``sentry_sdk.Client``.

    The SDK client is never bound to the global hub, so it does not interfere
    with an application that also calls ``sentry_sdk.init``. Default
    integrations are disabled; hooking into the host is the adapters' job.
    """

    def __init__(self, dsn: Optional[str], options: TransportOptions, **client_kwargs: Any):
        """
        Initialize client.

        Args:
            dsn: Sentry DSN
            options: Transport options (already merged by the gateway)
            client_kwargs: Extra keyword arguments for ``sentry_sdk.Client``
        """
        self.options = options

        kwargs: Dict[str, Any] = {
            "default_integrations": False,
            "auto_enabling_integrations": False,
            "attach_stacktrace": options.auto_log_stacks,
            "include_local_variables": options.shift_variables,
            "ignore_errors": list(options.excluded_exception_types),
            "shutdown_timeout": options.timeout_seconds,
            "before_send": self._before_send,
        }
        if options.server_name:
            kwargs["server_name"] = options.server_name
        kwargs.update(client_kwargs)

        self._client = sentry_sdk.Client(dsn=dsn, **kwargs)
        logger.debug("sentry_client_created", dsn_configured=bool(dsn))

    @property
    def sdk_client(self) -> sentry_sdk.Client:
        return self._client

    def capture_exception(
        self,
        exception: BaseException,
        options: CaptureOptions,
        logger_name: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Optional[str]:
        event, hint = event_from_exception(exception, client_options=self._client.options)
        event["level"] = sentry_level(options.level, "error")
        self._apply_common(event, options, logger_name, context)
        return self._client.capture_event(event, hint=hint)

    def capture_message(
        self,
        message: str,
        params: Sequence[Any],
        options: CaptureOptions,
        include_stack: bool = False,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Optional[str]:
        params = list(params or [])
        formatted = message
        if params:
            try:
                formatted = message % tuple(params)
            except (TypeError, ValueError):
                logger.debug("message_params_not_applied", message=message)
        event: Dict[str, Any] = {
            "message": formatted,
            "logentry": {"message": message, "params": params, "formatted": formatted},
            "level": sentry_level(options.level),
        }
        if include_stack:
            event["threads"] = {
                "values": [
                    {"stacktrace": current_stacktrace(), "crashed": False, "current": True}
                ]
            }
        self._apply_common(event, options, None, context)
        return self._client.capture_event(event)

    def capture_query(
        self, query: str, level: str = "info", engine_name: str = ""
    ) -> Optional[str]:
        event: Dict[str, Any] = {
            "message": query,
            "level": sentry_level(level),
            "contexts": {"query": {"query": query, "engine": engine_name}},
        }
        self._apply_common(event, CaptureOptions(), None, None)
        return self._client.capture_event(event)

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until queued events are sent or the timeout expires."""
        self._client.flush(timeout=timeout if timeout is not None else self.options.timeout_seconds)

    def close(self) -> None:
        """Flush and shut down the underlying SDK client."""
        self._client.close(timeout=self.options.timeout_seconds)

    def _apply_common(
        self,
        event: Dict[str, Any],
        options: CaptureOptions,
        logger_name: Optional[str],
        context: Optional[Mapping[str, Any]],
    ) -> None:
        event["logger"] = logger_name or self.options.logger_name

        tags = dict(self.options.tags)
        tags.update(options.tags)
        event["tags"] = tags

        if options.extra:
            event["extra"] = dict(options.extra)
        if options.culprit:
            event["transaction"] = options.culprit
        if context:
            event.setdefault("contexts", {})["vars"] = dict(context)

    def _before_send(self, event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        processors = list(self.options.processors)
        if not self.options.send_stack_trace:
            processors.append(strip_stacktraces)
        return apply_processors(event, hint, processors)

