"""Data models passed between the adapters, the gateway and the client."""

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(IntFlag):
    """Runtime error severity codes, usable as a reporting mask."""

    ERROR = 1
    WARNING = 2
    PARSE = 4
    NOTICE = 8
    CORE_ERROR = 16
    CORE_WARNING = 32
    COMPILE_ERROR = 64
    COMPILE_WARNING = 128
    USER_ERROR = 256
    USER_WARNING = 512
    USER_NOTICE = 1024
    STRICT = 2048
    RECOVERABLE_ERROR = 4096
    DEPRECATED = 8192
    USER_DEPRECATED = 16384
    ALL = 32767


# Severities that only surface through the shutdown hook
FATAL_SEVERITIES = frozenset(
    {
        Severity.ERROR,
        Severity.PARSE,
        Severity.CORE_ERROR,
        Severity.CORE_WARNING,
        Severity.COMPILE_ERROR,
        Severity.COMPILE_WARNING,
        Severity.STRICT,
    }
)


class RuntimeErrorReport(Exception):
    """Exception wrapper for a runtime error so it can be captured like any other."""

    def __init__(self, message: str, severity: int, filename: str, lineno: int):
        super().__init__(message)
        self.severity = severity
        self.filename = filename
        self.lineno = lineno


@dataclass(frozen=True)
class NormalizedError:
    """A runtime error signal reduced to the fields the gateway needs."""

    message: str
    severity: int
    file: str = ""
    line: int = 0

    @property
    def is_fatal(self) -> bool:
        return self.severity in FATAL_SEVERITIES

    def to_exception(self) -> RuntimeErrorReport:
        return RuntimeErrorReport(self.message, self.severity, self.file, self.line)


@dataclass(frozen=True)
class LogEntry:
    """One record of a flushed log batch."""

    message: str
    level: str
    category: str
    timestamp: float


class CaptureOptions(BaseModel):
    """Per-call capture overrides. Never mutates the gateway configuration."""

    model_config = ConfigDict(frozen=True)

    culprit: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)
    level: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)


class CaptureStatus(str, Enum):
    """Outcome of a capture call."""

    CAPTURED = "captured"
    NOT_CAPTURED = "not_captured"  # environment gating
    DROPPED = "dropped"  # filtered by the reporting client
    FAILED = "failed"  # recorded by adapters that isolate failures


@dataclass(frozen=True)
class CaptureResult:
    """Result of a capture call."""

    status: CaptureStatus
    event_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def captured(self) -> bool:
        return self.status is CaptureStatus.CAPTURED

    @classmethod
    def logged(cls, event_id: str) -> "CaptureResult":
        return cls(CaptureStatus.CAPTURED, event_id=event_id)

    @classmethod
    def not_captured(cls) -> "CaptureResult":
        return cls(CaptureStatus.NOT_CAPTURED)

    @classmethod
    def dropped(cls) -> "CaptureResult":
        return cls(CaptureStatus.DROPPED)

    @classmethod
    def failed(cls, error: str) -> "CaptureResult":
        return cls(CaptureStatus.FAILED, error=error)


@dataclass
class LogBatchResult:
    """Per-entry results of one processed log batch."""

    results: List[CaptureResult] = field(default_factory=list)
    skipped: int = 0

    @property
    def captured(self) -> int:
        return sum(1 for result in self.results if result.captured)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if result.status is CaptureStatus.FAILED)

    @property
    def errors(self) -> List[str]:
        return [result.error for result in self.results if result.error]
