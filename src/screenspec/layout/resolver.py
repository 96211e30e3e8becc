"""Section Layout Resolver - sectioned containers to LayoutPlans."""

from typing import Any, Callable, Mapping

from ..core.logging_config import get_logger
from ..document.models import (
    GridColumns,
    GridLayoutConfig,
    HorizontalLayoutConfig,
    NodeSpec,
    SectionLayoutNode,
    SectionSpec,
)
from ..render.nodes import LayoutPlan, RenderNode, SectionPlan
from ..render.paths import REPEAT, read_binding
from ..styles.properties import resolve_insets
from .validation import validate_section_layout

logger = get_logger(__name__)

NodeResolver = Callable[[NodeSpec, Mapping[str, Any], Mapping[str, Any] | None], RenderNode]


class SectionLayoutResolver:
    """
    Builds a LayoutPlan for a `sectionLayout` node.

    Section content (header, footer, children, data-driven items) is resolved
    through the node resolver it is given, normally DocumentResolver.resolve.
    """

    def __init__(self, resolve_node: NodeResolver) -> None:
        self._resolve_node = resolve_node

    def validate(self, node: SectionLayoutNode) -> None:
        """Raise LayoutValidationError if the node cannot be planned."""
        validate_section_layout(node, node.id or "sectionLayout")

    def resolve(
        self,
        node: SectionLayoutNode,
        snapshot: Mapping[str, Any],
        locals: Mapping[str, Any] | None = None,
    ) -> LayoutPlan:
        """
        Validate the node, then resolve every section.

        Args:
            node: Section layout node
            snapshot: State snapshot
            locals: Template locals in scope

        Returns:
            LayoutPlan with sections in declaration order

        Raises:
            LayoutValidationError: Before any section is resolved
        """
        self.validate(node)
        sections = tuple(self._section(section, snapshot, locals or {}) for section in node.sections)
        return LayoutPlan(section_spacing=node.section_spacing, sections=sections)

    def _section(
        self, section: SectionSpec, snapshot: Mapping[str, Any], locals: Mapping[str, Any]
    ) -> SectionPlan:
        layout = section.layout
        params: dict[str, Any] = {
            "id": section.id,
            "layout_type": layout.type,
            "alignment": layout.alignment,
            "item_spacing": layout.item_spacing,
            "line_spacing": layout.line_spacing,
            "content_insets": resolve_insets(layout.content_insets),
            "shows_dividers": layout.shows_dividers,
            "sticky_header": section.sticky_header,
        }
        if isinstance(layout, GridLayoutConfig):
            if isinstance(layout.columns, GridColumns):
                params["adaptive_min_width"] = layout.columns.adaptive.min_width
            else:
                params["columns"] = layout.columns
        elif isinstance(layout, HorizontalLayoutConfig):
            params["shows_indicators"] = layout.shows_indicators
            params["is_paging_enabled"] = layout.is_paging_enabled
            params["snap_behavior"] = layout.snap_behavior
            if layout.item_dimensions is not None:
                params["item_dimensions"] = layout.item_dimensions.model_dump(exclude_none=True)

        if section.header is not None:
            params["header"] = self._resolve_node(section.header, snapshot, locals)
        if section.footer is not None:
            params["footer"] = self._resolve_node(section.footer, snapshot, locals)
        params["children"] = self._children(section, snapshot, locals)
        return SectionPlan(**params)

    def _children(
        self, section: SectionSpec, snapshot: Mapping[str, Any], locals: Mapping[str, Any]
    ) -> tuple[RenderNode, ...]:
        children = [self._resolve_node(child, snapshot, locals) for child in section.children]
        if section.data_source is None or section.item_template is None:
            return tuple(children)

        items = read_binding(section.data_source, snapshot, locals)
        if items is None:
            items = []
        if not isinstance(items, list):
            logger.warning(
                "section_data_not_array",
                section=section.id,
                data_source=section.data_source,
                type=type(items).__name__,
            )
            items = []
        for index, item in enumerate(items):
            scope = {
                **locals,
                section.item_variable: item,
                section.index_variable: index,
                REPEAT: (*locals.get(REPEAT, ()), index),
            }
            children.append(self._resolve_node(section.item_template, snapshot, scope))
        return tuple(children)
