"""Render Data Models.

Output of a resolution pass. Nodes hold only resolved values: no style names,
no templates, no bound paths apart from the action intents they hand back to
the runtime. Each pass builds a fresh tree; trees compare by value, so a
renderer can diff the previous and next pass.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..document.models import ActionSpec


class RenderModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class BoundAction(RenderModel):
    """An action plus the template locals (forEach item/index) visible where it was declared."""

    action: ActionSpec
    locals: dict[str, Any] = Field(default_factory=dict)


class SectionPlan(RenderModel):
    """One resolved section: layout parameters plus resolved content."""

    id: str | None = None
    layout_type: str
    alignment: str | None = None
    item_spacing: float = 8
    line_spacing: float = 8
    content_insets: dict[str, float] = Field(default_factory=dict)
    shows_dividers: bool = False
    columns: int | None = None
    adaptive_min_width: float | None = None
    item_dimensions: dict[str, float] | None = None
    shows_indicators: bool = False
    is_paging_enabled: bool = False
    snap_behavior: str = "none"
    sticky_header: bool = False
    header: "RenderNode | None" = None
    footer: "RenderNode | None" = None
    children: tuple["RenderNode", ...] = ()


class LayoutPlan(RenderModel):
    """Pure data for a sectioned container; pixel arithmetic is the renderer's job."""

    section_spacing: float = 0
    sections: tuple[SectionPlan, ...] = ()


class RenderNode(RenderModel):
    """A fully resolved node."""

    kind: str
    id: str | None = None
    style: dict[str, Any] = Field(default_factory=dict)
    padding: dict[str, float] = Field(default_factory=dict)
    text: str | None = None
    placeholder: str | None = None
    value: Any = None
    props: dict[str, Any] = Field(default_factory=dict)
    actions: dict[str, BoundAction] = Field(default_factory=dict)
    children: tuple["RenderNode", ...] = ()
    layout: LayoutPlan | None = None
    error: str | None = Field(default=None, description="Set when the node degraded")

    def to_dict(self) -> dict[str, Any]:
        """Plain data for renderers, dropping unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)

    def find(self, node_id: str) -> "RenderNode | None":
        """Depth-first search by id, including section content."""
        stack: list[RenderNode] = [self]
        while stack:
            node = stack.pop()
            if node.id == node_id:
                return node
            nested = list(node.children)
            if node.layout is not None:
                for section in node.layout.sections:
                    nested.extend(n for n in (section.header, section.footer) if n is not None)
                    nested.extend(section.children)
            stack.extend(reversed(nested))
        return None


class RenderTree(RenderModel):
    """
    One resolution pass.

    `version` is the document schema version the author declared;
    `ir_version` is the render-tree schema renderers are written against.
    """

    document_id: str
    version: str
    ir_version: str
    root: RenderNode

    def find(self, node_id: str) -> RenderNode | None:
        return self.root.find(node_id)


SectionPlan.model_rebuild()
LayoutPlan.model_rebuild()
RenderNode.model_rebuild()
