"""Configuration management using Pydantic Settings."""

import json
from threading import Lock
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ImportString, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models import Severity

DEFAULT_PROCESSORS = ["sentry_gateway.processors.sanitize_data"]


def _parse_list(v: Any, default: List[str]) -> List[str]:
    """Parse a list from a JSON array, a comma-separated string or a list."""
    if v is None or v == "":
        return list(default)
    if isinstance(v, (list, tuple, set, frozenset)):
        return [str(x) for x in v]
    if isinstance(v, str):
        v = v.strip()
        if v.startswith("["):
            return [str(x) for x in json.loads(v)]
        return [x.strip() for x in v.split(",") if x.strip()]
    return list(default)


class TransportOptions(BaseModel):
    """Options handed through to the reporting client."""

    model_config = ConfigDict(frozen=True)

    logger_name: str = "generic"
    auto_log_stacks: bool = False
    server_name: Optional[str] = None
    installation_name: Optional[str] = None  # reported as the "site" tag
    tags: Dict[str, str] = Field(default_factory=dict)
    send_stack_trace: bool = True
    timeout_seconds: int = 2
    excluded_exception_types: List[str] = Field(default_factory=list)
    shift_variables: bool = True
    processors: List[ImportString] = Field(
        default_factory=lambda: list(DEFAULT_PROCESSORS), validate_default=True
    )

    @field_validator("tags", mode="before")
    @classmethod
    def stringify_tags(cls, v: Any) -> Any:
        """Tag values are always sent as strings."""
        if isinstance(v, dict):
            return {str(key): str(value) for key, value in v.items()}
        return v


class GatewaySettings(BaseSettings):
    """Gateway settings loaded from keyword arguments and environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SENTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    # Endpoint
    dsn: Optional[str] = None

    # Environment gating
    environment: str = "dev"
    enabled_environments: Annotated[List[str], NoDecode] = ["production", "staging"]

    # Event payload
    extra_variables: Dict[str, Any] = {}
    options: TransportOptions = Field(default_factory=TransportOptions)

    # Diagnostics
    debug: bool = False  # include underlying failure text in raised errors
    log_level: str = "INFO"

    # Adapters
    error_reporting: int = int(Severity.ALL)
    log_route_levels: Annotated[List[str], NoDecode] = []  # Empty = all levels
    log_route_categories: Annotated[List[str], NoDecode] = []  # Empty = all categories

    @field_validator("enabled_environments", mode="before")
    @classmethod
    def parse_enabled_environments(cls, v: Any) -> List[str]:
        """Parse enabled_environments from string or list."""
        return _parse_list(v, ["production", "staging"])

    @field_validator("log_route_levels", "log_route_categories", mode="before")
    @classmethod
    def parse_log_route_filters(cls, v: Any) -> List[str]:
        """Parse log route filters from string or list."""
        return _parse_list(v, [])

    @field_validator("log_route_levels", mode="after")
    @classmethod
    def lowercase_levels(cls, v: List[str]) -> List[str]:
        return [level.lower() for level in v]


# Lazily built process-wide settings
_settings: Optional[GatewaySettings] = None
_settings_lock = Lock()


def get_settings() -> GatewaySettings:
    """
    Get global settings instance.

    Returns:
        GatewaySettings loaded from the environment
    """
    global _settings

    if _settings is None:
        with _settings_lock:
            # Double-check locking pattern
            if _settings is None:
                _settings = GatewaySettings()

    return _settings


def reset_settings() -> None:
    """Reset global settings instance."""
    global _settings
    with _settings_lock:
        _settings = None
