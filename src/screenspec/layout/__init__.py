"""Sectioned container planning."""

from ..render.nodes import LayoutPlan, SectionPlan
from .resolver import SectionLayoutResolver
from .validation import validate_section_layout

__all__ = [
    "LayoutPlan",
    "SectionPlan",
    "SectionLayoutResolver",
    "validate_section_layout",
]
