"""Error types raised by the gateway and its adapters."""

from typing import Optional


class GatewayError(Exception):
    """
    Base class for gateway errors.

    Carries a numeric ``code`` so callers can still see the error code of the
    underlying failure when the message itself has been redacted.
    """

    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigurationError(GatewayError):
    """Invalid tags or a reporting client that could not be created."""


class EventValidationError(GatewayError):
    """An event was rejected before anything was sent."""

    def __init__(self, message: str, kind: str, code: int = 0):
        super().__init__(message, code)
        self.kind = kind


class TransmissionError(GatewayError):
    """The reporting client failed while sending an event."""


class ComponentReferenceError(GatewayError):
    """An adapter has no usable gateway to forward to."""


def error_code(error: BaseException) -> int:
    """
    Extract a numeric error code from an arbitrary exception.

    Looks at ``code`` first, then ``errno``. Anything that is not an int
    resolves to 0.
    """
    for attr in ("code", "errno"):
        value: Optional[object] = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0
