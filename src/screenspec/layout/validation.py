"""Section layout rules checked before any plan is built."""

from ..core.validate import LayoutValidationError
from ..document.models import GridColumns, GridLayoutConfig, SectionLayoutNode


def validate_section_layout(node: SectionLayoutNode, location: str = "sectionLayout") -> None:
    """
    Check a section layout node.

    Rules:
    - grid sections need `columns`, either an integer >= 1 or an adaptive spec
    - spacing values and insets are non-negative
    - section ids are unique within the node
    - data-driven sections carry an `itemTemplate`

    Raises:
        LayoutValidationError: On the first broken rule, with its location
    """
    if node.section_spacing < 0:
        raise LayoutValidationError("sectionSpacing must be >= 0", f"{location}.sectionSpacing")

    seen: set[str] = set()
    for position, section in enumerate(node.sections):
        where = f"{location}.sections[{position}]"
        if section.id is not None:
            if section.id in seen:
                raise LayoutValidationError(f"duplicate section id {section.id!r}", where)
            seen.add(section.id)

        layout = section.layout
        if layout.item_spacing < 0 or layout.line_spacing < 0:
            raise LayoutValidationError("spacing must be >= 0", f"{where}.layout")

        if isinstance(layout, GridLayoutConfig):
            columns = layout.columns
            if columns is None:
                raise LayoutValidationError("grid layout requires 'columns'", f"{where}.layout.columns")
            if not isinstance(columns, GridColumns) and columns < 1:
                raise LayoutValidationError(
                    f"grid columns must be >= 1, got {columns}", f"{where}.layout.columns"
                )

        insets = layout.content_insets
        if insets is not None:
            for edge, value in insets.model_dump().items():
                if value is not None and value < 0:
                    raise LayoutValidationError(
                        f"content inset {edge} must be >= 0", f"{where}.layout.contentInsets"
                    )

        if section.data_source is not None and section.item_template is None:
            raise LayoutValidationError("dataSource requires an itemTemplate", where)
