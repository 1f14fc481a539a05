"""
Relay settings.

Every option is read from the environment (and an optional `.env` file) once,
when a `Settings` instance is created, and validated immediately so a bad
value fails the process at startup rather than on the first request.

Usage:
    from app.core.settings import settings

    store = TransactionStore(reserialize=settings.RESERIALIZE, ...)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DuplicatePolicy(Enum):
    """What a second store-transaction call for a known id does."""

    REJECT = "reject"
    OVERWRITE = "overwrite"


class SettingsValidationError(Exception):
    """Raised when settings validation fails."""

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid configuration for {field}={value!r}: {message}")


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _parse_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean from an environment variable; unknown spellings are errors."""
    raw = _env(name)
    if raw == "":
        return default
    if raw.lower() in _TRUE:
        return True
    if raw.lower() in _FALSE:
        return False
    raise SettingsValidationError(name, raw, "expected one of 0/1/true/false/yes/no/on/off")


def _parse_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw == "":
        return default
    try:
        return int(raw, 0)
    except ValueError:
        raise SettingsValidationError(name, raw, "expected an integer") from None


def _parse_duplicate_policy() -> DuplicatePolicy:
    raw = _env("DUPLICATE_POLICY", DuplicatePolicy.REJECT.value).lower()
    try:
        return DuplicatePolicy(raw)
    except ValueError:
        allowed = ", ".join(p.value for p in DuplicatePolicy)
        raise SettingsValidationError("DUPLICATE_POLICY", raw, f"expected one of {allowed}") from None


def _parse_csv_set(name: str) -> FrozenSet[str]:
    raw = _env(name, "*")
    return frozenset(v.strip() for v in raw.split(",") if v.strip())


@dataclass
class Settings:
    """
    Unified settings class with validation.

    Build a fresh instance with `Settings()` after changing the environment;
    the module-level `settings` is the one the server process uses.
    """

    PROJECT_NAME: str = "multiagent-relay"

    # Network
    HOST: str = field(default_factory=lambda: _env("HOST", "0.0.0.0"))
    PORT: int = field(default_factory=lambda: _parse_int("PORT", 3001))
    CORS_ORIGINS: FrozenSet[str] = field(default_factory=lambda: _parse_csv_set("CORS_ORIGINS"))

    # Relay behavior
    RESERIALIZE: bool = field(default_factory=lambda: _parse_bool("RESERIALIZE", False))
    DUPLICATE_POLICY: DuplicatePolicy = field(default_factory=_parse_duplicate_policy)
    MAX_BODY_BYTES: int = field(default_factory=lambda: _parse_int("MAX_BODY_BYTES", 1024 * 1024))

    # Observability
    LOG_LEVEL: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO").upper())
    AUDIT_DB_PATH: str = field(
        default_factory=lambda: _env("RELAY_AUDIT_DB_PATH") or _env("AUDIT_DB_PATH")
    )

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        self._validate()

    def _validate(self) -> None:
        errors: list[str] = []

        if not (1 <= self.PORT <= 65535):
            errors.append(f"PORT must be between 1 and 65535, got {self.PORT}")
        if self.MAX_BODY_BYTES <= 0:
            errors.append(f"MAX_BODY_BYTES must be positive, got {self.MAX_BODY_BYTES}")
        if self.LOG_LEVEL not in _LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {self.LOG_LEVEL}")

        if errors:
            raise SettingsValidationError("MULTIPLE", None, "; ".join(errors))

    @property
    def mode(self) -> str:
        return "reserialize" if self.RESERIALIZE else "pass_through"

    @property
    def cors_allow_all(self) -> bool:
        return "*" in self.CORS_ORIGINS

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in dir(self):
            if key.startswith("_") or key.isupper() is False:
                continue
            value = getattr(self, key)
            if isinstance(value, frozenset):
                result[key] = sorted(value)
            elif isinstance(value, Enum):
                result[key] = value.value
            else:
                result[key] = value
        return result


# Global settings instance
settings = Settings()
