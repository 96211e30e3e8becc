"""Tests for section layout validation and planning."""

import pytest

from screenspec.core.validate import LayoutValidationError
from screenspec.document.models import DocumentDefinition, SectionLayoutNode
from screenspec.layout.resolver import SectionLayoutResolver
from screenspec.layout.validation import validate_section_layout
from screenspec.render.resolver import DocumentResolver


def section_node(**fields) -> SectionLayoutNode:
    return SectionLayoutNode.model_validate({"type": "sectionLayout", **fields})


def document_with(node: dict, state: dict | None = None) -> DocumentDefinition:
    return DocumentDefinition.model_validate({"id": "layout", "state": state or {}, "root": {"children": [node]}})


# ============================================================================
# Validation
# ============================================================================


@pytest.mark.unit
def test_grid_columns_zero_rejected():
    node = section_node(sections=[{"layout": {"type": "grid", "columns": 0}}])

    with pytest.raises(LayoutValidationError) as exc_info:
        validate_section_layout(node, "root.children[0]")

    assert exc_info.value.location == "root.children[0].sections[0].layout.columns"


@pytest.mark.unit
def test_grid_requires_columns():
    node = section_node(sections=[{"layout": {"type": "grid"}}])
    with pytest.raises(LayoutValidationError):
        validate_section_layout(node)


@pytest.mark.unit
def test_adaptive_grid_columns_accepted():
    node = section_node(sections=[{"layout": {"type": "grid", "columns": {"adaptive": {"minWidth": 120}}}}])
    validate_section_layout(node)


@pytest.mark.unit
@pytest.mark.parametrize(
    "fields",
    [
        {"sectionSpacing": -1, "sections": []},
        {"sections": [{"id": "a", "layout": {"type": "list"}}, {"id": "a", "layout": {"type": "list"}}]},
        {"sections": [{"layout": {"type": "flow", "itemSpacing": -4}}]},
        {"sections": [{"layout": {"type": "list", "contentInsets": {"top": -1}}}]},
        {"sections": [{"layout": {"type": "list"}, "dataSource": "items"}]},
    ],
)
def test_invalid_layouts(fields):
    with pytest.raises(LayoutValidationError):
        validate_section_layout(section_node(**fields))


# ============================================================================
# Planning
# ============================================================================


@pytest.mark.unit
def test_plan_carries_layout_parameters():
    node = {
        "type": "sectionLayout",
        "id": "feed",
        "sectionSpacing": 16,
        "sections": [
            {
                "id": "grid",
                "layout": {
                    "type": "grid",
                    "columns": 3,
                    "itemSpacing": 4,
                    "contentInsets": {"all": 2, "horizontal": 10, "top": 0},
                },
                "header": {"type": "label", "id": "gridHeader", "text": "Grid"},
                "children": [{"type": "label", "id": "cell", "text": "x"}],
            },
            {
                "id": "carousel",
                "layout": {
                    "type": "horizontal",
                    "isPagingEnabled": True,
                    "itemDimensions": {"width": 200, "height": 120},
                },
                "footer": {"type": "divider", "id": "end"},
            },
        ],
    }
    resolver = DocumentResolver(document_with(node))

    tree = resolver.resolve_tree({})
    plan = tree.find("feed").layout

    assert plan.section_spacing == 16
    grid, carousel = plan.sections
    assert grid.layout_type == "grid"
    assert grid.columns == 3
    assert grid.item_spacing == 4
    assert grid.line_spacing == 8
    assert grid.content_insets == {"top": 0.0, "bottom": 2.0, "leading": 10.0, "trailing": 10.0}
    assert grid.header.text == "Grid"
    assert [child.id for child in grid.children] == ["cell"]

    assert carousel.is_paging_enabled is True
    assert carousel.item_dimensions == {"width": 200, "height": 120}
    assert carousel.footer.kind == "divider"


@pytest.mark.unit
def test_data_driven_section_items():
    node = {
        "type": "sectionLayout",
        "id": "list",
        "sections": [
            {
                "layout": {"type": "list"},
                "dataSource": "products",
                "itemVariable": "product",
                "itemTemplate": {"type": "label", "text": "${index}. ${product.name}"},
            }
        ],
    }
    state = {"products": [{"name": "Tea"}, {"name": "Cake"}]}
    resolver = DocumentResolver(document_with(node, state))

    section = resolver.resolve_tree(state).find("list").layout.sections[0]

    assert section.shows_dividers is True
    assert [child.text for child in section.children] == ["0. Tea", "1. Cake"]


@pytest.mark.unit
def test_non_array_data_source_yields_no_items():
    node = {
        "type": "sectionLayout",
        "id": "list",
        "sections": [
            {"layout": {"type": "list"}, "dataSource": "products", "itemTemplate": {"type": "spacer"}}
        ],
    }
    resolver = DocumentResolver(document_with(node))

    section = resolver.resolve_tree({"products": "oops"}).find("list").layout.sections[0]

    assert section.children == ()


@pytest.mark.unit
def test_invalid_grid_rejected_before_planning(mocker):
    """The node resolver is never invoked for a layout that fails validation."""
    resolve_node = mocker.Mock()
    planner = SectionLayoutResolver(resolve_node)
    node = section_node(
        sections=[{"layout": {"type": "grid", "columns": 0}, "children": [{"type": "spacer"}]}]
    )

    with pytest.raises(LayoutValidationError):
        planner.resolve(node, {})

    resolve_node.assert_not_called()


@pytest.mark.unit
def test_invalid_layout_degrades_node_in_tree():
    """At resolution time a broken section layout becomes an error node, siblings survive."""
    node = {"type": "sectionLayout", "id": "grid", "sections": [{"layout": {"type": "grid", "columns": 0}}]}
    document = DocumentDefinition.model_validate(
        {"id": "d", "root": {"children": [node, {"type": "label", "id": "after", "text": "ok"}]}}
    )

    tree = DocumentResolver(document).resolve_tree({})

    assert tree.find("grid").error is not None
    assert tree.find("grid").layout is None
    assert tree.find("after").text == "ok"
