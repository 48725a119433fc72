"""
Centralized configuration with environment variable overrides.

Store limits, API endpoints and assignment settings live here. Nothing
is hardcoded in the scheduling or client logic.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from reservation_engine.logging_context import FormSessionFilter

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(form_session_id)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _optional_int(env_var: str) -> Optional[int]:
    """Parse an optional integer; unset or blank means None."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return None
    return _safe_int(env_var, raw)


@dataclass(frozen=True)
class ApiConfig:
    """Remote booking API connection settings."""

    base_url: str = os.getenv("BOOKING_API_BASE_URL", "http://localhost:8080/api")
    timeout_sec: float = _safe_float("BOOKING_API_TIMEOUT", "10.0")
    store_uuid: str = os.getenv("STORE_UUID", "")
    access_token: str = os.getenv("BOOKING_API_TOKEN", "")


@dataclass(frozen=True)
class StoreConfig:
    """Per-store booking limits."""

    max_group_size: int = _safe_int("MAX_GUESTS_FOR_GROUP_BOOKING", "4")
    timezone: str = os.getenv("STORE_TIMEZONE", "Australia/Melbourne")


@dataclass(frozen=True)
class AssignmentConfig:
    """Staff assignment settings."""

    # Fixed seed for "any professional" picks; unset means OS entropy.
    random_seed: Optional[int] = _optional_int("ASSIGNMENT_RANDOM_SEED")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    api: ApiConfig = field(default_factory=ApiConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    assignment: AssignmentConfig = field(default_factory=AssignmentConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not config.api.base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"BOOKING_API_BASE_URL must be an http(s) URL, got {config.api.base_url!r}"
        )
    if config.api.timeout_sec <= 0:
        raise ValueError(
            f"BOOKING_API_TIMEOUT must be > 0, got {config.api.timeout_sec}"
        )
    if config.store.max_group_size < 1:
        raise ValueError(
            "MAX_GUESTS_FOR_GROUP_BOOKING must be >= 1, "
            f"got {config.store.max_group_size}"
        )
    if not config.store.timezone:
        raise ValueError("STORE_TIMEZONE must not be empty")


def build_log_handler() -> logging.Handler:
    """Console handler that stamps every record with the form session ID."""
    handler = logging.StreamHandler()
    handler.addFilter(FormSessionFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    return handler


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[build_log_handler()],
    )
    logger.info("Configuration loaded for API at '%s'", config.api.base_url)
    return config


# Singleton instance
settings = load_config()
