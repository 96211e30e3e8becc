"""Render tree resolution."""

from .nodes import BoundAction, LayoutPlan, RenderNode, RenderTree, SectionPlan
from .resolver import DocumentResolver

__all__ = [
    "BoundAction",
    "DocumentResolver",
    "LayoutPlan",
    "RenderNode",
    "RenderTree",
    "SectionPlan",
]
