"""Bridge from flushed log batches to the gateway."""

import logging
from datetime import datetime
from fnmatch import fnmatchcase
from logging.handlers import BufferingHandler
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import structlog

from ..client import sentry_level
from ..exceptions import EventValidationError, TransmissionError
from ..models import CaptureOptions, CaptureResult, LogBatchResult, LogEntry
from .base import GatewayAdapter, GatewaySource

logger = structlog.get_logger(__name__)

LOG_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# The route must never feed the gateway's or the SDK's own records back in
DEFAULT_EXCEPT_CATEGORIES = ("sentry_gateway", "sentry_gateway.*", "sentry_sdk", "sentry_sdk.*")

RawLogEntry = Union[LogEntry, Tuple[str, str, str, float]]


def format_log_time(timestamp: float) -> str:
    """Format epoch seconds as local time, dropping sub-second precision."""
    return datetime.fromtimestamp(timestamp).strftime(LOG_TIME_FORMAT)


def _to_entry(raw: RawLogEntry) -> LogEntry:
    if isinstance(raw, LogEntry):
        return raw
    message, level, category, timestamp = raw
    return LogEntry(message=message, level=level, category=category, timestamp=float(timestamp))


class LogRouteAdapter(GatewayAdapter):
    """
    Sends each entry of a log batch to the gateway as a message.

    Entries are processed in order and independently: a failed capture is
    recorded in the batch result and the next entry is still sent.
    """

    def __init__(
        self,
        gateway: GatewaySource,
        levels: Optional[Sequence[str]] = None,
        categories: Optional[Sequence[str]] = None,
        except_categories: Sequence[str] = DEFAULT_EXCEPT_CATEGORIES,
    ):
        """
        Initialize adapter.

        Args:
            gateway: Gateway or gateway factory
            levels: Level names to route (empty = all)
            categories: Category patterns to route, e.g. ``app.*`` (empty = all)
            except_categories: Category patterns never routed
        """
        super().__init__(gateway)
        self.levels = [level.lower() for level in levels or []]
        self.categories = list(categories or [])
        self.except_categories = list(except_categories)

    def accepts(self, entry: LogEntry) -> bool:
        """Check the entry against the level and category filters."""
        if self.levels and entry.level.lower() not in self.levels:
            return False
        if self.categories and not any(fnmatchcase(entry.category, p) for p in self.categories):
            return False
        if any(fnmatchcase(entry.category, p) for p in self.except_categories):
            return False
        return True

    def process_logs(self, logs: Iterable[RawLogEntry]) -> LogBatchResult:
        """
        Send a batch of log entries.

        Args:
            logs: Entries in emission order, as LogEntry objects or
                (message, level, category, timestamp) tuples

        Returns:
            LogBatchResult with one result per routed entry
        """
        batch = LogBatchResult()
        gateway = self.gateway

        for raw in logs:
            entry = _to_entry(raw)
            if not self.accepts(entry):
                batch.skipped += 1
                continue

            options = CaptureOptions(
                level=sentry_level(entry.level),
                extra={
                    "message": entry.message,
                    "level": entry.level,
                    "category": entry.category,
                    "log_time": format_log_time(entry.timestamp),
                },
            )
            try:
                result = gateway.capture_message(entry.message, options=options)
            except (EventValidationError, TransmissionError) as e:
                logger.warning("log_entry_capture_failed", category=entry.category, error=str(e))
                result = CaptureResult.failed(str(e))
            batch.results.append(result)

        if batch.failed:
            logger.warning("log_batch_partially_failed", failed=batch.failed, total=len(batch.results))

        return batch


class LogRouteHandler(BufferingHandler):
    """
    stdlib logging handler that routes records through a LogRouteAdapter.

    Records are buffered and sent as one batch when the buffer reaches
    ``capacity``, on ``flush()`` and on ``close()``.
    """

    def __init__(self, adapter: LogRouteAdapter, capacity: int = 100, level: int = logging.NOTSET):
        super().__init__(capacity)
        self.adapter = adapter
        self.setLevel(level)
        self.last_result: Optional[LogBatchResult] = None

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(
                message=record.getMessage(),
                level=record.levelname.lower(),
                category=record.name,
                timestamp=record.created,
            )
        except Exception:
            self.handleError(record)
            return

        if not self.adapter.accepts(entry):
            return

        self.buffer.append(entry)
        if self.shouldFlush(record):
            self.flush()

    def flush(self) -> None:
        self.acquire()
        try:
            entries: List[LogEntry] = list(self.buffer)
            self.buffer.clear()
        finally:
            self.release()

        if entries:
            self.last_result = self.adapter.process_logs(entries)
