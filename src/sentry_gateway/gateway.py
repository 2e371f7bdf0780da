"""Error reporting gateway: gating, validation and enrichment in front of the client."""

import platform
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import structlog

from .client import ReportingClient, SentrySdkClient
from .config import GatewaySettings, TransportOptions, get_settings
from .exceptions import (
    ConfigurationError,
    EventValidationError,
    TransmissionError,
    error_code,
)
from .models import CaptureOptions, CaptureResult

logger = structlog.get_logger(__name__)

# Limits enforced by the Sentry server
MAX_MESSAGE_LENGTH = 2048
MAX_TAG_KEY_LENGTH = 32
MAX_TAG_VALUE_LENGTH = 200
MAX_CULPRIT_LENGTH = 200

ClientFactory = Callable[[Optional[str], TransportOptions], ReportingClient]


def merge_extra(base: Mapping[str, Any], override: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merge per-call extras over the configured base extras.

    Args:
        base: Extras configured for every event
        override: Per-call extras, winning on key collision

    Returns:
        New merged dict; neither input is modified
    """
    merged = dict(base)
    if override:
        merged.update(override)
    return merged


def tag_violation(tags: Mapping[str, Any]) -> Optional[str]:
    """Return a description of the first tag that breaks the length limits."""
    for key, value in tags.items():
        if len(str(key)) > MAX_TAG_KEY_LENGTH:
            return f"tag keys cannot contain more than {MAX_TAG_KEY_LENGTH} characters: {key!r}"
        if len(str(value)) > MAX_TAG_VALUE_LENGTH:
            return f"tag values cannot contain more than {MAX_TAG_VALUE_LENGTH} characters: {key!r}"
    return None


class Gateway:
    """
    Front door for every event sent to the tracking service.

    Gates on the active environment, validates and enriches events and
    delegates transmission to a single ReportingClient created at startup.
    Read-only after construction, so one instance can be shared between
    threads as long as its client can.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        client: Optional[ReportingClient] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Initialize gateway.

        Args:
            settings: Gateway configuration
            client: Already built reporting client (skips the factory)
            client_factory: Builds the client from DSN and derived options

        Raises:
            ConfigurationError: Invalid tags or client construction failure
        """
        self.settings = settings
        self.options = self._build_options()

        violation = tag_violation(self.options.tags)
        if violation:
            raise ConfigurationError(violation)

        if client is None:
            client = self._create_client(client_factory or SentrySdkClient)
        self._client = client

        logger.info(
            "gateway_initialized",
            environment=settings.environment,
            enabled=self.is_environment_enabled(),
        )

    @classmethod
    def from_settings(cls, settings: Optional[GatewaySettings] = None, **kwargs: Any) -> "Gateway":
        """Build a gateway from the given or the global settings."""
        return cls(settings or get_settings(), **kwargs)

    @property
    def client(self) -> ReportingClient:
        return self._client

    def is_environment_enabled(self) -> bool:
        return self.settings.environment in self.settings.enabled_environments

    def capture_exception(
        self,
        exception: BaseException,
        options: Optional[CaptureOptions] = None,
        logger_name: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> CaptureResult:
        """
        Send an exception.

        Returns:
            CaptureResult; NOT_CAPTURED when the environment is not enabled

        Raises:
            EventValidationError: Invalid culprit or per-call tags
            TransmissionError: The client failed to send the event
        """
        if not self.is_environment_enabled():
            return CaptureResult.not_captured()

        options = self._process_options(options)
        return self._transmit(
            "exception",
            self._client.capture_exception,
            exception,
            options,
            logger_name,
            context,
        )

    def capture_message(
        self,
        message: str,
        params: Optional[Sequence[Any]] = None,
        options: Optional[CaptureOptions] = None,
        include_stack: bool = False,
        context: Optional[Mapping[str, Any]] = None,
    ) -> CaptureResult:
        """
        Send a message.

        The length check runs before the environment gate, so an oversized
        message fails the same way in every environment.

        Raises:
            EventValidationError: Message too long, invalid culprit or tags
            TransmissionError: The client failed to send the event
        """
        if len(message) > MAX_MESSAGE_LENGTH:
            raise EventValidationError(
                f"cannot send messages that contain more than {MAX_MESSAGE_LENGTH} characters",
                kind="message_too_long",
            )

        if not self.is_environment_enabled():
            return CaptureResult.not_captured()

        options = self._process_options(options)
        return self._transmit(
            "message",
            self._client.capture_message,
            message,
            list(params or []),
            options,
            include_stack,
            context,
        )

    def capture_query(self, query: str, level: str = "info", engine_name: str = "") -> CaptureResult:
        """
        Send a query.

        Raises:
            TransmissionError: The client failed to send the event
        """
        if not self.is_environment_enabled():
            return CaptureResult.not_captured()

        return self._transmit("query", self._client.capture_query, query, level, engine_name)

    def _build_options(self) -> TransportOptions:
        configured = self.settings.options
        tags = {
            "environment": self.settings.environment,
            "python_version": platform.python_version(),
        }
        if configured.installation_name:
            tags["site"] = configured.installation_name
        tags.update(configured.tags)
        return configured.model_copy(update={"tags": tags})

    def _create_client(self, factory: ClientFactory) -> ReportingClient:
        try:
            return factory(self.settings.dsn, self.options)
        except Exception as e:
            logger.error("client_creation_failed", error=str(e))
            if self.settings.debug:
                raise ConfigurationError(f"failed to create client: {e}", code=error_code(e)) from e
            raise ConfigurationError("failed to create client", code=error_code(e)) from e

    def _process_options(self, options: Optional[CaptureOptions]) -> CaptureOptions:
        options = options or CaptureOptions()

        if options.culprit and len(options.culprit) > MAX_CULPRIT_LENGTH:
            raise EventValidationError(
                f"culprit cannot contain more than {MAX_CULPRIT_LENGTH} characters",
                kind="culprit_too_long",
            )

        violation = tag_violation(options.tags)
        if violation:
            raise EventValidationError(violation, kind="invalid_tag")

        return options.model_copy(
            update={"extra": merge_extra(self.settings.extra_variables, options.extra)}
        )

    def _transmit(self, kind: str, send: Callable[..., Optional[str]], *args: Any) -> CaptureResult:
        try:
            event_id = send(*args)
        except Exception as e:
            code = error_code(e)
            logger.error("capture_failed", kind=kind, error=str(e), code=code)
            if self.settings.debug:
                raise TransmissionError(f"failed to log {kind}: {e}", code=code) from e
            raise TransmissionError(f"failed to log {kind}", code=code) from e

        if event_id is None:
            logger.warning("event_dropped", kind=kind)
            return CaptureResult.dropped()

        logger.info("event_logged", kind=kind, event_id=event_id)
        return CaptureResult.logged(event_id)
