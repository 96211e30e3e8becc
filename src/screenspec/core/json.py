"""Fast, strict JSON decoding and canonical encoding."""

from typing import Any

import msgspec
import orjson

from .validate import DocumentError


class JSONParseError(DocumentError):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


_decoder = msgspec.json.Decoder()


def parse_json(data: str | bytes) -> Any:
    """
    Decode JSON text with msgspec.

    Malformed input is fatal; nothing is repaired.

    Args:
        data: JSON text

    Returns:
        Decoded value

    Raises:
        JSONParseError: If the text is not valid JSON
    """
    raw = data.encode("utf-8") if isinstance(data, str) else data
    try:
        return _decoder.decode(raw)
    except msgspec.DecodeError as e:
        raise JSONParseError(f"Invalid JSON: {e}", e)


def parse_json_object(data: str | bytes) -> dict[str, Any]:
    """
    Decode JSON text that must hold an object at the top level.

    Raises:
        JSONParseError: If the text is invalid or not an object
    """
    result = parse_json(data)
    if not isinstance(result, dict):
        raise JSONParseError(f"Expected object, got {type(result).__name__}")
    return result


def safe_json_dumps(obj: Any, sort_keys: bool = False) -> str:
    """
    Encode object to compact JSON text.

    Args:
        obj: Object to encode
        sort_keys: Emit object keys in sorted order (canonical form)

    Returns:
        JSON string
    """
    option = orjson.OPT_SORT_KEYS if sort_keys else 0
    try:
        return orjson.dumps(obj, option=option).decode("utf-8")
    except TypeError:
        # Integers outside 64-bit range and similar edge cases
        return msgspec.json.encode(obj).decode("utf-8")


def canonical_json(obj: Any) -> str:
    """Sorted-key compact JSON, stable across runs (used for cache keys)."""
    return safe_json_dumps(obj, sort_keys=True)
