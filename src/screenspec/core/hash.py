"""xxhash digests for cache keys.

Non-cryptographic and fast; digests never leave the process.
"""

from typing import Any

import xxhash

from .json import canonical_json


def hash_string(text: str, truncate: int | None = None) -> str:
    """
    Hex xxh64 digest of a string.

    Args:
        text: String to hash
        truncate: Optional length to cut the digest to

    Returns:
        Hex digest string
    """
    digest = xxhash.xxh64(text.encode("utf-8")).hexdigest()
    return digest[:truncate] if truncate else digest


def hash_value(value: Any) -> str:
    """Hash a JSON-like value through its canonical encoding; None hashes to ""."""
    if value is None:
        return ""
    return hash_string(canonical_json(value))


__all__ = ["hash_string", "hash_value"]
