"""One-call wiring of the gateway and both adapters into a Python process."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from .adapters import ErrorHandlerAdapter, LogRouteAdapter, LogRouteHandler
from .config import GatewaySettings, get_settings
from .gateway import Gateway

logger = structlog.get_logger(__name__)


@dataclass
class Integration:
    """Handles to everything install() wired up."""

    gateway: Gateway
    error_handler: ErrorHandlerAdapter
    log_handler: LogRouteHandler
    target_logger: logging.Logger

    def uninstall(self) -> None:
        """Flush pending log records and remove every hook."""
        self.target_logger.removeHandler(self.log_handler)
        self.log_handler.close()
        self.error_handler.uninstall()

        close = getattr(self.gateway.client, "close", None)
        if callable(close):
            close()

        logger.info("integration_uninstalled")


def install(
    settings: Optional[GatewaySettings] = None,
    target_logger: Optional[logging.Logger] = None,
    log_capacity: int = 100,
    log_level: int = logging.WARNING,
    **gateway_kwargs: Any,
) -> Integration:
    """
    Build a gateway from settings and hook it into the interpreter.

    Args:
        settings: Gateway settings (default: global settings)
        target_logger: Logger whose records are routed (default: root logger)
        log_capacity: Records buffered before a batch is sent
        log_level: Minimum level of routed records
        gateway_kwargs: Passed to Gateway (client or client_factory)

    Returns:
        Integration holding the gateway and adapters
    """
    settings = settings or get_settings()
    gateway = Gateway(settings, **gateway_kwargs)

    error_handler = ErrorHandlerAdapter(gateway, error_reporting=settings.error_reporting)
    error_handler.install()

    log_adapter = LogRouteAdapter(
        gateway,
        levels=settings.log_route_levels,
        categories=settings.log_route_categories,
    )
    log_handler = LogRouteHandler(log_adapter, capacity=log_capacity, level=log_level)
    target_logger = target_logger or logging.getLogger()
    target_logger.addHandler(log_handler)

    logger.info(
        "integration_installed",
        environment=settings.environment,
        log_levels=settings.log_route_levels or "all",
    )
    return Integration(gateway, error_handler, log_handler, target_logger)
