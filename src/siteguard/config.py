"""Configuration contract for the site access guard.

This module provides the Pydantic-validated ``GuardConfig`` that every
component receives. Direct os.environ/os.getenv usage is confined to
``load_config_from_env()``; all other code MUST use the config object.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator

DEFAULT_EXEMPT_PATH_PATTERNS = [
    r"/sites/appcatalog/_layouts/15/tenantappcatalog\.aspx/manageapps",
]
DEFAULT_ROLE_GROUP_NAMES = ["Owners", "Members", "Visitors"]

_TRUTHY = {"true", "1", "yes", "on"}


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class GuardConfig(BaseModel):
    """Settings for classification, resolution, and enforcement.

    Environment variables (see :func:`load_config_from_env`):
        SITEGUARD_LOG_LEVEL                — DEBUG | INFO | WARNING | ERROR | CRITICAL
        SITEGUARD_LOG_JSON                 — JSON log output (true/false)
        SITEGUARD_SENSITIVE_PATH_PATTERN   — regex identifying the protected namespace
        SITEGUARD_SENSITIVITY_MARKER       — marker string in resource descriptions
        SITEGUARD_EXEMPT_PATH_PATTERNS     — comma-separated regexes, always allowed
        SITEGUARD_SAFE_URL                 — redirect target on Deny
        SITEGUARD_ROLE_GROUPS              — comma-separated role group names
        SITEGUARD_BACKEND_TIMEOUT          — per-backend-call timeout (seconds)
        SITEGUARD_UI_POLL_ATTEMPTS         — rendered-list poll attempts
        SITEGUARD_UI_POLL_INTERVAL         — seconds between poll attempts
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    # Classification
    sensitive_path_pattern: str = Field(
        default="/teams/b",
        description="Case-insensitive regex matched against the resource path",
    )
    sensitivity_marker: str = Field(
        default="Protected B",
        description="Marker that classifies a resource via its description",
    )
    exempt_path_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXEMPT_PATH_PATTERNS),
        description="Administrative paths that are never gated",
    )

    # Enforcement
    safe_url: str = Field(
        default="https://contoso.sharepoint.com",
        description="Where denied principals are sent",
    )

    # Membership resolution
    role_group_names: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ROLE_GROUP_NAMES),
        description="Directory role groups whose members are authorized",
    )
    backend_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for any single backend call",
    )
    ui_poll_attempts: int = Field(
        default=10,
        ge=1,
        description="How many times the rendered principal list is sampled",
    )
    ui_poll_interval_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Delay between rendered-list samples",
    )

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("sensitive_path_pattern")
    @classmethod
    def validate_sensitive_pattern(cls, v: str) -> str:
        if not v:
            raise ValueError("sensitive_path_pattern must not be empty")
        _compile_or_raise(v)
        return v

    @field_validator("exempt_path_patterns")
    @classmethod
    def validate_exempt_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            _compile_or_raise(pattern)
        return v

    @field_validator("safe_url")
    @classmethod
    def validate_safe_url(cls, v: str) -> str:
        """Safe URL must be absolute http(s) or root-relative."""
        if not v.startswith(("http://", "https://", "/")):
            raise ValueError("safe_url must start with http://, https://, or /")
        return v

    @field_validator("role_group_names")
    @classmethod
    def validate_role_groups(cls, v: list[str]) -> list[str]:
        names = [name.strip() for name in v if name.strip()]
        if not names:
            raise ValueError("role_group_names must name at least one group")
        return names


def _compile_or_raise(pattern: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid pattern {pattern!r}: {e}")


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_config_from_env() -> GuardConfig:
    """Load guard configuration from environment variables.

    This is the ONLY place where os.getenv is allowed for guard settings.
    Unset variables fall back to the model defaults.

    Returns:
        GuardConfig instance with values from environment or defaults.
    """
    import os

    values: dict[str, object] = {
        "log_level": os.getenv("SITEGUARD_LOG_LEVEL", "INFO"),
        "log_json": os.getenv("SITEGUARD_LOG_JSON", "false").lower() in _TRUTHY,
    }

    optional = {
        "SITEGUARD_SENSITIVE_PATH_PATTERN": ("sensitive_path_pattern", str),
        "SITEGUARD_SENSITIVITY_MARKER": ("sensitivity_marker", str),
        "SITEGUARD_EXEMPT_PATH_PATTERNS": ("exempt_path_patterns", _split_csv),
        "SITEGUARD_SAFE_URL": ("safe_url", str),
        "SITEGUARD_ROLE_GROUPS": ("role_group_names", _split_csv),
        "SITEGUARD_BACKEND_TIMEOUT": ("backend_timeout_seconds", float),
        "SITEGUARD_UI_POLL_ATTEMPTS": ("ui_poll_attempts", int),
        "SITEGUARD_UI_POLL_INTERVAL": ("ui_poll_interval_seconds", float),
    }
    for env_name, (field_name, convert) in optional.items():
        raw = os.getenv(env_name)
        if raw is not None:
            values[field_name] = convert(raw)

    return GuardConfig(**values)


__all__ = [
    "DEFAULT_EXEMPT_PATH_PATTERNS",
    "DEFAULT_ROLE_GROUP_NAMES",
    "GuardConfig",
    "LogLevel",
    "load_config_from_env",
]
