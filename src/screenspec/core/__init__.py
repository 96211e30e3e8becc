"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .validate import (
    CycleError,
    DocumentError,
    LayoutValidationError,
    ScreenSpecError,
    ValidationResult,
    validate_json_size,
    validate_json_depth,
)
from .logging_config import configure_from_settings, configure_logging, get_logger, LogContext
from .json import (
    parse_json,
    parse_json_object,
    safe_json_dumps,
    canonical_json,
    JSONParseError,
)
from .hash import hash_string, hash_value
from .cache import LRUCache, Stats


def create_container(settings: Settings | None = None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors and validation
    "ScreenSpecError",
    "DocumentError",
    "CycleError",
    "LayoutValidationError",
    "ValidationResult",
    "validate_json_size",
    "validate_json_depth",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "LogContext",
    # JSON
    "parse_json",
    "parse_json_object",
    "safe_json_dumps",
    "canonical_json",
    "JSONParseError",
    # DI
    "create_container",
    # Hashing
    "hash_string",
    "hash_value",
    # Caching
    "LRUCache",
    "Stats",
]
