"""Bridge from host error, exception and shutdown callbacks to the gateway."""

import atexit
import sys
import threading
import warnings
from typing import Any, Callable, Optional, Type, Union

import structlog

from ..exceptions import EventValidationError, TransmissionError
from ..models import NormalizedError, Severity
from .base import GatewayAdapter, GatewaySource

logger = structlog.get_logger(__name__)

ReportingMask = Union[int, Callable[[], int]]


def severity_for_warning(category: Type[Warning]) -> Severity:
    """Map a warning category to a runtime error severity."""
    if issubclass(category, (DeprecationWarning, PendingDeprecationWarning)):
        return Severity.DEPRECATED
    if issubclass(category, SyntaxWarning):
        return Severity.COMPILE_WARNING
    if issubclass(category, UserWarning):
        return Severity.USER_WARNING
    return Severity.WARNING


class ErrorHandlerAdapter(GatewayAdapter):
    """
    Forwards runtime errors, uncaught exceptions and fatal errors seen at
    shutdown to the gateway.

    Capturing is additive: the host's own handling always runs afterwards and
    a failed capture is logged, never raised into the host.
    """

    def __init__(
        self,
        gateway: GatewaySource,
        error_reporting: ReportingMask = Severity.ALL,
        default_error_handler: Optional[Callable[[NormalizedError], None]] = None,
        default_exception_handler: Optional[Callable[[BaseException], None]] = None,
        last_error_provider: Optional[Callable[[], Optional[NormalizedError]]] = None,
    ):
        """
        Initialize adapter.

        Args:
            gateway: Gateway or gateway factory
            error_reporting: Severity mask, or a callable returning the active mask
            default_error_handler: Host handling that runs after every runtime error
            default_exception_handler: Host handling that runs after every exception
            last_error_provider: Returns the runtime's last error; defaults to the
                last error seen by this adapter
        """
        super().__init__(gateway)
        self.error_reporting = error_reporting
        self.default_error_handler = default_error_handler
        self.default_exception_handler = default_exception_handler
        self.last_error_provider = last_error_provider or self.get_last_error

        self._last_error: Optional[NormalizedError] = None
        self._last_error_forwarded = False
        self._shutdown_done = False
        self._shutdown_lock = threading.Lock()

        self._installed = False
        self._previous_excepthook: Any = None
        self._previous_threading_excepthook: Any = None
        self._previous_showwarning: Any = None

    # ------------------------------------------------------------------
    # Host callbacks
    # ------------------------------------------------------------------

    def handle_error(self, severity: int, message: str, file: str = "", line: int = 0) -> None:
        """Handle a runtime error, then hand it to the host's default handling."""
        error = self.capture_error(severity, message, file, line)
        if self.default_error_handler is not None:
            self.default_error_handler(error)

    def handle_exception(self, exception: BaseException) -> None:
        """Handle an uncaught exception, then hand it to the host's default handling."""
        self._forward(exception)
        if self.default_exception_handler is not None:
            self.default_exception_handler(exception)

    def handle_shutdown(self) -> None:
        """
        Forward the last error if it was fatal.

        Runs at most once. Errors already forwarded by handle_error are not
        sent again.
        """
        with self._shutdown_lock:
            if self._shutdown_done:
                return
            self._shutdown_done = True

        error = self.last_error_provider()
        if error is None or not error.is_fatal:
            return
        if error is self._last_error and self._last_error_forwarded:
            return

        logger.info("fatal_error_at_shutdown", severity=error.severity, file=error.file, line=error.line)
        self._forward(error.to_exception())

    # ------------------------------------------------------------------
    # Error bookkeeping
    # ------------------------------------------------------------------

    def capture_error(self, severity: int, message: str, file: str = "", line: int = 0) -> NormalizedError:
        """Record a runtime error and forward it if the reporting mask allows."""
        error = NormalizedError(message=str(message), severity=int(severity), file=file or "", line=line or 0)
        self._last_error = error
        self._last_error_forwarded = False

        if self.reporting_mask() & error.severity:
            self._forward(error.to_exception())
            self._last_error_forwarded = True

        return error

    def record_error(self, severity: int, message: str, file: str = "", line: int = 0) -> NormalizedError:
        """Record an error the host learned of out of band, without forwarding it."""
        error = NormalizedError(message=str(message), severity=int(severity), file=file or "", line=line or 0)
        self._last_error = error
        self._last_error_forwarded = False
        return error

    def get_last_error(self) -> Optional[NormalizedError]:
        return self._last_error

    def reporting_mask(self) -> int:
        mask = self.error_reporting
        return int(mask() if callable(mask) else mask)

    def _forward(self, exception: BaseException) -> None:
        gateway = self.gateway
        try:
            gateway.capture_exception(exception)
        except (EventValidationError, TransmissionError) as e:
            logger.error("error_capture_failed", error=str(e), code=e.code)

    # ------------------------------------------------------------------
    # Python runtime hooks
    # ------------------------------------------------------------------

    def install(self) -> None:
        """
        Hook into the interpreter.

        Chains sys.excepthook, threading.excepthook and warnings.showwarning
        and registers handle_shutdown with atexit.
        """
        if self._installed:
            return

        self._previous_excepthook = sys.excepthook
        self._previous_threading_excepthook = threading.excepthook
        self._previous_showwarning = warnings.showwarning

        sys.excepthook = self._excepthook
        threading.excepthook = self._threading_excepthook
        warnings.showwarning = self._showwarning
        atexit.register(self.handle_shutdown)

        self._installed = True
        logger.debug("error_handler_installed")

    def uninstall(self) -> None:
        """Restore the hooks replaced by install()."""
        if not self._installed:
            return

        sys.excepthook = self._previous_excepthook
        threading.excepthook = self._previous_threading_excepthook
        warnings.showwarning = self._previous_showwarning
        atexit.unregister(self.handle_shutdown)

        self._installed = False
        logger.debug("error_handler_uninstalled")

    def _excepthook(self, exc_type, exc_value, exc_tb) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            self._forward(exc_value)
        self._previous_excepthook(exc_type, exc_value, exc_tb)

    def _threading_excepthook(self, args) -> None:
        if args.exc_value is not None and not issubclass(args.exc_type, SystemExit):
            self._forward(args.exc_value)
        self._previous_threading_excepthook(args)

    def _showwarning(self, message, category, filename, lineno, file=None, line=None) -> None:
        self.capture_error(severity_for_warning(category), str(message), filename, lineno)
        self._previous_showwarning(message, category, filename, lineno, file, line)
