"""Document state: paths, store, change notification."""

from .paths import StatePathError, format_path, normalize_path, parse_path
from .store import StateChange, StateChangeCallback, StateStore

__all__ = [
    "StateStore",
    "StateChange",
    "StateChangeCallback",
    "StatePathError",
    "parse_path",
    "format_path",
    "normalize_path",
]
