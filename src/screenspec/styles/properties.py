"""Style property normalization.

Colors are opaque to the resolver apart from their spelling: hex colors are
upper-cased with a leading `#`, and 3-digit shorthand is expanded. Named
colors ("red", "clear") pass through unchanged.
"""

import re
from typing import Any, Mapping

from ..document.models import EdgeInsets

_HEX = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

EDGES = ("top", "bottom", "leading", "trailing")


def is_color_key(key: str) -> bool:
    return key == "color" or key.endswith("Color")


def normalize_color(value: Any) -> Any:
    """`#fff` -> `#FFFFFF`, `1a2b3c` -> `#1A2B3C`; 8 digits keep their ARGB order."""
    if not isinstance(value, str):
        return value
    match = _HEX.match(value.strip())
    if match is None:
        return value
    digits = match.group(1).upper()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def normalize_style(properties: Mapping[str, Any]) -> dict[str, Any]:
    """Copy a property bag with every color value normalized."""
    result: dict[str, Any] = {}
    for key, value in properties.items():
        if is_color_key(key):
            result[key] = normalize_color(value)
        elif isinstance(value, list) and key.endswith("Colors"):
            result[key] = [normalize_color(item) for item in value]
        else:
            result[key] = value
    return result


def merge_properties(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge `overlay` onto `base`; overlay keys win.

    Object values (padding, font descriptors) merge key-wise instead of being
    replaced, so a child can change one edge of an inherited padding.
    """
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def resolve_insets(insets: EdgeInsets | Mapping[str, Any] | None) -> dict[str, float]:
    """
    Collapse an inset spec to four edges.

    Precedence, later wins: `all`, then `horizontal`/`vertical`, then the
    specific edge.
    """
    resolved = {edge: 0.0 for edge in EDGES}
    if insets is None:
        return resolved
    values = insets.model_dump() if isinstance(insets, EdgeInsets) else dict(insets)

    def number(key: str) -> float | None:
        value = values.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None

    everywhere = number("all")
    if everywhere is not None:
        resolved = {edge: everywhere for edge in EDGES}
    horizontal = number("horizontal")
    if horizontal is not None:
        resolved["leading"] = resolved["trailing"] = horizontal
    vertical = number("vertical")
    if vertical is not None:
        resolved["top"] = resolved["bottom"] = vertical
    for edge in EDGES:
        value = number(edge)
        if value is not None:
            resolved[edge] = value
    return resolved
