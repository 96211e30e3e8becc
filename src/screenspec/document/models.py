"""Document Data Models.

Typed, immutable views of a screen document. Node, action, data source and
section layout kinds are closed tagged unions on their `type` field; an
unrecognized tag fails validation with its location.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class SpecModel(BaseModel):
    """Base for document models: camelCase JSON keys, frozen once parsed."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ============================================================================
# Shared pieces
# ============================================================================


class EdgeInsets(SpecModel):
    """Padding or content insets; an edge beats its axis, which beats `all`."""

    all: float | None = None
    horizontal: float | None = None
    vertical: float | None = None
    top: float | None = None
    bottom: float | None = None
    leading: float | None = None
    trailing: float | None = None


class ImageSource(SpecModel):
    system: str | None = Field(default=None, description="Platform symbol name")
    url: str | None = Field(default=None, description="Remote image url (template)")
    asset: str | None = Field(default=None, description="Bundled asset name")


class GradientStop(SpecModel):
    color: str | None = None
    light_color: str | None = None
    dark_color: str | None = None
    location: float = Field(default=0.0, ge=0.0, le=1.0)


class VariantStyles(SpecModel):
    """Named styles per interaction state of a button."""

    normal: str | None = None
    selected: str | None = None
    disabled: str | None = None


# ============================================================================
# Styles
# ============================================================================


class StyleSpec(SpecModel):
    """
    Open property bag with an optional single parent.

    Every key other than `inherits` (or its alias `baseStyle`) is a style
    property and is kept verbatim in `properties`.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    inherits: str | None = Field(
        default=None, validation_alias=AliasChoices("inherits", "baseStyle")
    )

    @property
    def properties(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


# ============================================================================
# Data sources
# ============================================================================


class StaticDataSource(SpecModel):
    type: Literal["static"]
    value: Any = None


class BindingDataSource(SpecModel):
    type: Literal["binding"]
    path: str | None = None
    template: str | None = None

    @model_validator(mode="after")
    def check_target(self) -> "BindingDataSource":
        if (self.path is None) == (self.template is None):
            raise ValueError("binding data source needs exactly one of 'path' or 'template'")
        return self


class LocalBindingDataSource(SpecModel):
    """Reads `path` from the enclosing node's local state."""

    type: Literal["localBinding"]
    path: str


DataSourceSpec = Annotated[
    Union[StaticDataSource, BindingDataSource, LocalBindingDataSource], Field(discriminator="type")
]


# ============================================================================
# Actions
# ============================================================================


class SetStateAction(SpecModel):
    type: Literal["setState"]
    path: str
    value: Any = Field(default=None, description="Literal or {'$expr': template}")


class ToggleStateAction(SpecModel):
    type: Literal["toggleState"]
    path: str


class AppendToArrayAction(SpecModel):
    type: Literal["appendToArray"]
    path: str
    value: Any = None


class ToggleInArrayAction(SpecModel):
    type: Literal["toggleInArray"]
    path: str
    value: Any = None


class RemoveFromArrayAction(SpecModel):
    type: Literal["removeFromArray"]
    path: str
    value: Any = None
    index: int | None = Field(default=None, ge=0)


class SequenceAction(SpecModel):
    type: Literal["sequence"]
    steps: list[Union[str, "ActionSpec"]] = Field(default_factory=list)


class RequestAction(SpecModel):
    type: Literal["request"]
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"] = "GET"
    url: str
    loading_path: str | None = None
    response_path: str | None = None
    error_path: str | None = None
    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)
    query_params: dict[str, Any] = Field(default_factory=dict)
    on_success: Union[str, "ActionSpec", None] = None
    on_error: Union[str, "ActionSpec", None] = None

    @model_validator(mode="before")
    @classmethod
    def upper_method(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("method"), str):
            data = {**data, "method": data["method"].upper()}
        return data


class BindingMessage(SpecModel):
    type: Literal["binding"] = "binding"
    template: str


class AlertButton(SpecModel):
    label: str
    style: Literal["default", "cancel", "destructive"] = "default"
    action: Union[str, "ActionSpec", None] = None


class ShowAlertAction(SpecModel):
    type: Literal["showAlert"]
    title: str = "Alert"
    message: str | BindingMessage | None = None
    buttons: list[AlertButton] = Field(
        default_factory=lambda: [AlertButton(label="OK", style="default")]
    )


class DismissAction(SpecModel):
    type: Literal["dismiss"]


class NavigateAction(SpecModel):
    type: Literal["navigate"]
    destination: str
    presentation: Literal["push", "present", "fullScreen"] = "push"


class CustomAction(SpecModel):
    type: Literal["custom"]
    name: str
    params: dict[str, Any] = Field(default_factory=dict)


ActionSpec = Annotated[
    Union[
        SetStateAction,
        ToggleStateAction,
        AppendToArrayAction,
        ToggleInArrayAction,
        RemoveFromArrayAction,
        SequenceAction,
        RequestAction,
        ShowAlertAction,
        DismissAction,
        NavigateAction,
        CustomAction,
    ],
    Field(discriminator="type"),
]

ActionRef = Union[str, ActionSpec]
"""Named action reference or an inline action."""


# ============================================================================
# Section layout
# ============================================================================


class AdaptiveColumns(SpecModel):
    min_width: float = Field(gt=0)


class GridColumns(SpecModel):
    adaptive: AdaptiveColumns


class ItemDimensions(SpecModel):
    width: float | None = None
    height: float | None = None
    aspect_ratio: float | None = None


class LayoutConfigBase(SpecModel):
    alignment: str | None = None
    item_spacing: float = 8
    line_spacing: float = 8
    content_insets: EdgeInsets | None = None


class ListLayoutConfig(LayoutConfigBase):
    type: Literal["list"]
    shows_dividers: bool = True


class GridLayoutConfig(LayoutConfigBase):
    type: Literal["grid"]
    # Range checks live in SectionLayoutResolver.validate
    columns: int | GridColumns | None = None
    shows_dividers: bool = False


class HorizontalLayoutConfig(LayoutConfigBase):
    type: Literal["horizontal"]
    item_dimensions: ItemDimensions | None = None
    shows_indicators: bool = False
    is_paging_enabled: bool = False
    snap_behavior: Literal["none", "viewAligned", "paging"] = "none"
    shows_dividers: bool = False


class FlowLayoutConfig(LayoutConfigBase):
    type: Literal["flow"]
    shows_dividers: bool = False


SectionLayoutConfig = Annotated[
    Union[ListLayoutConfig, GridLayoutConfig, HorizontalLayoutConfig, FlowLayoutConfig],
    Field(discriminator="type"),
]


class SectionSpec(SpecModel):
    id: str | None = None
    layout: SectionLayoutConfig
    header: "NodeSpec | None" = None
    footer: "NodeSpec | None" = None
    sticky_header: bool = False
    children: list["NodeSpec"] = Field(default_factory=list)
    data_source: str | None = Field(default=None, description="State path of the item array")
    item_template: "NodeSpec | None" = None
    item_variable: str = "item"
    index_variable: str = "index"


# ============================================================================
# Nodes
# ============================================================================


class NodeBase(SpecModel):
    id: str | None = None
    style_id: str | None = None
    style: dict[str, Any] = Field(default_factory=dict, description="Inline style overrides")
    padding: EdgeInsets | None = None
    actions: dict[str, ActionRef] = Field(default_factory=dict)
    state: dict[str, Any] | None = Field(
        default=None, description="Initial values of the local state this node owns, read as `local.<key>`"
    )


class ContainerNode(NodeBase):
    type: Literal["vstack", "hstack", "zstack"]
    alignment: str | dict[str, str] | None = None
    spacing: float | None = None
    children: list["NodeSpec"] = Field(default_factory=list)


class RootNode(NodeBase):
    """Document root: a vertical container with screen-level settings."""

    type: Literal["root"]
    background_color: str | None = None
    color_scheme: Literal["light", "dark", "system"] = "system"
    children: list["NodeSpec"] = Field(default_factory=list)


class LabelNode(NodeBase):
    type: Literal["label"]
    text: str | None = None
    data_source_id: str | None = None
    data: dict[str, DataSourceSpec] = Field(default_factory=dict)


class ButtonNode(NodeBase):
    type: Literal["button"]
    text: str | None = None
    data_source_id: str | None = None
    data: dict[str, DataSourceSpec] = Field(default_factory=dict)
    styles: VariantStyles | None = None
    is_selected_binding: str | None = None
    is_disabled_binding: str | None = None
    fill_width: bool = False
    image: ImageSource | None = None


class TextFieldNode(NodeBase):
    type: Literal["textfield"]
    placeholder: str | None = None
    bind: str | None = None
    local_bind: str | None = None


class ToggleNode(NodeBase):
    type: Literal["toggle"]
    text: str | None = None
    bind: str | None = None
    local_bind: str | None = None


class SliderNode(NodeBase):
    type: Literal["slider"]
    bind: str | None = None
    local_bind: str | None = None
    min_value: float = 0.0
    max_value: float = 1.0

    @model_validator(mode="after")
    def check_range(self) -> "SliderNode":
        if self.min_value > self.max_value:
            raise ValueError(f"minValue {self.min_value} exceeds maxValue {self.max_value}")
        return self


class ImageNode(NodeBase):
    type: Literal["image"]
    image: ImageSource | None = None
    data_source_id: str | None = None


class ShapeNode(NodeBase):
    type: Literal["shape"]
    shape: Literal["rectangle", "circle", "capsule", "roundedRectangle", "ellipse"] = Field(
        default="rectangle", validation_alias=AliasChoices("shape", "shapeType")
    )


class GradientNode(NodeBase):
    type: Literal["gradient"]
    gradient_colors: list[GradientStop] = Field(
        default_factory=list, validation_alias=AliasChoices("gradientColors", "colors")
    )
    gradient_start: str = Field(default="top", validation_alias=AliasChoices("gradientStart", "start"))
    gradient_end: str = Field(default="bottom", validation_alias=AliasChoices("gradientEnd", "end"))


class SpacerNode(NodeBase):
    type: Literal["spacer"]


class DividerNode(NodeBase):
    type: Literal["divider"]


class SectionLayoutNode(NodeBase):
    type: Literal["sectionLayout"]
    section_spacing: float = 0
    sections: list[SectionSpec] = Field(default_factory=list)


class ForEachNode(NodeBase):
    type: Literal["forEach"]
    items: str = Field(description="State path of the array to repeat over")
    item_variable: str = "item"
    index_variable: str = "index"
    layout: Literal["vstack", "hstack", "zstack"] = "vstack"
    spacing: float | None = None
    alignment: str | dict[str, str] | None = None
    template: "NodeSpec"
    empty_view: "NodeSpec | None" = None


_NODE_TYPES = (
    ContainerNode,
    LabelNode,
    ButtonNode,
    TextFieldNode,
    ToggleNode,
    SliderNode,
    ImageNode,
    ShapeNode,
    GradientNode,
    SpacerNode,
    DividerNode,
    SectionLayoutNode,
    ForEachNode,
)

NodeSpec = Annotated[Union[_NODE_TYPES], Field(discriminator="type")]

RootSpec = Annotated[Union[(RootNode, *_NODE_TYPES)], Field(discriminator="type")]


# ============================================================================
# Document
# ============================================================================


class DocumentDefinition(SpecModel):
    """Complete screen document."""

    id: str = Field(min_length=1)
    version: str = "0.1.0"
    state: dict[str, Any] = Field(default_factory=dict)
    styles: dict[str, StyleSpec] = Field(default_factory=dict)
    data_sources: dict[str, DataSourceSpec] = Field(default_factory=dict)
    actions: dict[str, ActionSpec] = Field(default_factory=dict)
    root: RootSpec

    @model_validator(mode="before")
    @classmethod
    def default_root_type(cls, data: Any) -> Any:
        """A root object without `type` is the screen root container."""
        if isinstance(data, dict) and isinstance(data.get("root"), dict) and "type" not in data["root"]:
            data = {**data, "root": {**data["root"], "type": "root"}}
        return data


for _model in (
    SequenceAction,
    RequestAction,
    AlertButton,
    SectionSpec,
    ContainerNode,
    RootNode,
    SectionLayoutNode,
    ForEachNode,
    DocumentDefinition,
):
    _model.model_rebuild()
