"""Style cascade."""

from .properties import merge_properties, normalize_color, normalize_style, resolve_insets
from .resolver import StyleResolver

__all__ = [
    "StyleResolver",
    "merge_properties",
    "normalize_color",
    "normalize_style",
    "resolve_insets",
]
