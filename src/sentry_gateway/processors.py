"""Event processors applied to every event before it leaves the process.

A processor takes ``(event, hint)`` and returns the event (possibly modified)
or ``None`` to drop it.
"""

import re
from typing import Any, Callable, Dict, Optional, Sequence

import structlog

logger = structlog.get_logger(__name__)

Event = Dict[str, Any]
Processor = Callable[[Event, Dict[str, Any]], Optional[Event]]

MASK = "********"

SENSITIVE_KEY_RE = re.compile(
    r"(password|secret|passwd|api_key|apikey|access_token|auth|"
    r"credentials|mysql_pwd|stripetoken|card\[number\])",
    re.IGNORECASE,
)
CREDIT_CARD_RE = re.compile(r"^(?:\d[ -]*?){13,16}$")

# Top-level event sections that may carry user supplied values
SANITIZED_SECTIONS = ("extra", "contexts", "request", "user")


def _sanitize(value: Any, key: Optional[str] = None) -> Any:
    if value is None or isinstance(value, bool):
        return value
    if key is not None and SENSITIVE_KEY_RE.search(key):
        return MASK
    if isinstance(value, dict):
        return {k: _sanitize(v, str(k)) for k, v in value.items()}
    if isinstance(value, list):
        return [_sanitize(item) for item in value]
    if isinstance(value, str) and CREDIT_CARD_RE.match(value):
        return MASK
    return value


def _iter_frames(event: Event):
    for section in ("exception", "threads"):
        for value in (event.get(section) or {}).get("values") or []:
            stacktrace = value.get("stacktrace") or {}
            for frame in stacktrace.get("frames") or []:
                yield frame


def sanitize_data(event: Event, hint: Dict[str, Any]) -> Event:
    """
    Mask credential-like values and credit card numbers.

    Any string that is entirely 13 to 16 digits (spaces and dashes allowed) is
    masked wherever it appears, so a log message consisting only of such a
    number is sent as the mask.
    """
    for section in SANITIZED_SECTIONS:
        if section in event:
            event[section] = _sanitize(event[section])

    for frame in _iter_frames(event):
        if "vars" in frame:
            frame["vars"] = _sanitize(frame["vars"])

    return event


def strip_stacktraces(event: Event, hint: Dict[str, Any]) -> Event:
    """Remove stack traces from exception and thread values."""
    for section in ("exception", "threads"):
        for value in (event.get(section) or {}).get("values") or []:
            value.pop("stacktrace", None)
    return event


def apply_processors(
    event: Event, hint: Dict[str, Any], processors: Sequence[Processor]
) -> Optional[Event]:
    """
    Run processors in order.

    Args:
        event: Sentry event dict
        hint: SDK hint dict
        processors: Processors to apply

    Returns:
        Processed event, or None if a processor dropped it
    """
    for processor in processors:
        event = processor(event, hint)
        if event is None:
            logger.debug(
                "event_dropped_by_processor",
                processor=getattr(processor, "__name__", repr(processor)),
            )
            return None
    return event
