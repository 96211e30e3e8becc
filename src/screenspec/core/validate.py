"""Error types and load-time validation helpers."""

from dataclasses import dataclass
from typing import Any


# Validation limits
MAX_DOCUMENT_SIZE = 1024 * 1024  # 1MB
MAX_JSON_DEPTH = 64


class ScreenSpecError(Exception):
    """Base error for document loading and resolution."""

    pass


class DocumentError(ScreenSpecError):
    """Document failed to load (malformed JSON, schema error, unknown type tag)."""

    def __init__(self, message: str, location: str | None = None) -> None:
        self.message = message
        self.location = location
        super().__init__(f"{location}: {message}" if location else message)


class CycleError(DocumentError):
    """Style inheritance chain loops back on itself."""

    def __init__(self, chain: list[str]) -> None:
        self.chain = list(chain)
        super().__init__(
            "style inheritance cycle: " + " -> ".join(self.chain),
            location=f"styles.{self.chain[0]}" if self.chain else "styles",
        )


class LayoutValidationError(DocumentError):
    """Section layout configuration is invalid."""

    pass


@dataclass(frozen=True)
class ValidationResult:
    """Validation error with details (for Result pattern)."""

    message: str
    location: str | None = None
    value: Any | None = None

    @classmethod
    def from_error(cls, error: DocumentError) -> "ValidationResult":
        """Build from a raised document error."""
        return cls(message=error.message, location=error.location)


def validate_json_size(data: str | bytes, max_size: int = MAX_DOCUMENT_SIZE, name: str = "Document") -> None:
    """
    Validate raw document size before decoding.

    Args:
        data: JSON text to validate
        max_size: Maximum allowed size in bytes
        name: Name for error messages

    Raises:
        DocumentError: If size exceeds limit
    """
    size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
    if size > max_size:
        raise DocumentError(f"{name} size {size} bytes exceeds maximum {max_size} bytes")


def validate_json_depth(obj: Any, max_depth: int = MAX_JSON_DEPTH, current_depth: int = 0) -> None:
    """
    Validate JSON nesting depth to prevent runaway recursion during resolution.

    Args:
        obj: Object to validate
        max_depth: Maximum allowed nesting depth
        current_depth: Current depth (internal)

    Raises:
        DocumentError: If depth exceeds limit
    """
    if current_depth > max_depth:
        raise DocumentError(f"JSON nesting depth {current_depth} exceeds maximum {max_depth}")

    if isinstance(obj, dict):
        for value in obj.values():
            validate_json_depth(value, max_depth, current_depth + 1)
    elif isinstance(obj, list):
        for item in obj:
            validate_json_depth(item, max_depth, current_depth + 1)
