"""Document Resolver - NodeSpec trees to RenderNode trees."""

import time
from typing import Any, Callable, Mapping

from ..core.logging_config import get_logger
from ..core.validate import ScreenSpecError
from ..document.models import (
    ActionRef,
    BindingDataSource,
    ButtonNode,
    ContainerNode,
    DataSourceSpec,
    DividerNode,
    DocumentDefinition,
    ForEachNode,
    GradientNode,
    ImageNode,
    ImageSource,
    LabelNode,
    LocalBindingDataSource,
    NodeSpec,
    RootNode,
    SectionLayoutNode,
    SequenceAction,
    SetStateAction,
    ShapeNode,
    SliderNode,
    SpacerNode,
    StaticDataSource,
    TextFieldNode,
    ToggleNode,
)
from ..document.versioning import CURRENT_IR
from ..expressions.evaluator import ExpressionEvaluator
from ..expressions.values import is_number, stringify
from ..layout.resolver import SectionLayoutResolver
from ..monitoring.metrics import MetricsCollector, metrics_collector
from ..styles.properties import merge_properties, normalize_color, resolve_insets
from ..styles.resolver import StyleResolver
from .nodes import BoundAction, RenderNode, RenderTree
from .paths import REPEAT, enter_local_scope, read_binding

logger = get_logger(__name__)

VALUE_CHANGED = "valueChanged"
EVENT_LOCAL = "$event"


class DocumentResolver:
    """
    Resolves a document's node tree against a state snapshot.

    Resolution is a pure function of (document, snapshot, locals): the same
    inputs always give an equal RenderNode tree. A node that fails to resolve
    degrades to an empty node carrying `error`; its siblings are unaffected.
    """

    def __init__(
        self,
        document: DocumentDefinition,
        styles: StyleResolver | None = None,
        evaluator: ExpressionEvaluator | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.document = document
        self.styles = styles or StyleResolver(document.styles)
        self.evaluator = evaluator or ExpressionEvaluator()
        self.sections = SectionLayoutResolver(self.resolve)
        self.metrics = metrics or metrics_collector

        self._handlers: dict[type, Callable[[Any, Mapping[str, Any], dict[str, Any]], dict[str, Any]]] = {
            RootNode: self._root,
            ContainerNode: self._container,
            LabelNode: self._label,
            ButtonNode: self._button,
            TextFieldNode: self._textfield,
            ToggleNode: self._toggle,
            SliderNode: self._slider,
            ImageNode: self._image,
            ShapeNode: self._shape,
            GradientNode: self._gradient,
            SpacerNode: self._empty,
            DividerNode: self._empty,
            SectionLayoutNode: self._section_layout,
            ForEachNode: self._for_each,
        }

    def resolve_tree(self, snapshot: Mapping[str, Any]) -> RenderTree:
        """
        Resolve the document root.

        Args:
            snapshot: State snapshot (see StateStore.snapshot)

        Returns:
            RenderTree for this pass
        """
        start = time.perf_counter()
        root = self.resolve(self.document.root, snapshot)
        self.metrics.record_resolution(time.perf_counter() - start)
        self.metrics.record_cache("style", *self.styles.cache.stats.take_unreported())
        self.metrics.record_cache("expression", *self.evaluator.cache.stats.take_unreported())
        return RenderTree(
            document_id=self.document.id, version=self.document.version, ir_version=str(CURRENT_IR), root=root
        )

    def resolve(
        self,
        node: NodeSpec | RootNode,
        snapshot: Mapping[str, Any],
        locals: Mapping[str, Any] | None = None,
    ) -> RenderNode:
        """
        Resolve one node and its descendants.

        Args:
            node: Node to resolve
            snapshot: State snapshot
            locals: Template locals (forEach item/index) in scope

        Returns:
            Resolved node; on failure an empty node of the same kind with `error` set
        """
        scope = dict(locals or {})
        if node.state is not None:
            scope = enter_local_scope(node.id or "root", node.state, snapshot, scope)
        handler = self._handlers.get(type(node))
        if handler is None:
            raise TypeError(f"No resolver for node type {type(node).__name__}")

        try:
            fields = self._common(node, snapshot, scope)
            fields.update(handler(node, snapshot, scope))
            if isinstance(node, (TextFieldNode, ToggleNode, SliderNode)):
                self._bind(node, fields, scope)
            return RenderNode(**fields)
        except ScreenSpecError as e:
            logger.error("node_resolution_failed", kind=node.type, node_id=node.id, error=str(e))
            self.metrics.record_node_failure(node.type)
            return RenderNode(kind=node.type, id=node.id, error=str(e))

    # Shared fields

    def _common(self, node: Any, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        style = self.styles.resolve(self._style_id(node, snapshot, scope), node.style or None)
        padding_spec = style.pop("padding", None)
        if node.padding is not None:
            padding_spec = merge_properties(
                {"padding": padding_spec if isinstance(padding_spec, dict) else {}},
                {"padding": node.padding.model_dump(exclude_none=True)},
            )["padding"]
        return {
            "kind": node.type,
            "id": node.id,
            "style": style,
            "padding": resolve_insets(padding_spec if isinstance(padding_spec, dict) else None),
            "actions": self._actions(node.actions, scope),
        }

    def _style_id(self, node: Any, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> str | None:
        if not isinstance(node, ButtonNode) or node.styles is None:
            return node.style_id
        variants = node.styles
        if variants.disabled and self._is_disabled(node, snapshot, scope):
            return variants.disabled
        if variants.selected and self._is_selected(node, snapshot, scope):
            return variants.selected
        return variants.normal or node.style_id

    def _is_selected(self, node: ButtonNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> bool:
        if node.is_selected_binding is None:
            return False
        return self.evaluator.evaluate_bool(node.is_selected_binding, snapshot, scope)

    def _is_disabled(self, node: ButtonNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> bool:
        if node.is_disabled_binding is None:
            return False
        return self.evaluator.evaluate_bool(node.is_disabled_binding, snapshot, scope)

    def _actions(self, actions: Mapping[str, ActionRef], scope: dict[str, Any]) -> dict[str, BoundAction]:
        bound: dict[str, BoundAction] = {}
        for event, ref in actions.items():
            action = self.lookup_action(ref)
            if action is not None:
                bound[event] = BoundAction(action=action, locals=scope)
        return bound

    def lookup_action(self, ref: ActionRef) -> Any:
        """Dereference an action name; unknown names log and yield None."""
        if not isinstance(ref, str):
            return ref
        action = self.document.actions.get(ref)
        if action is None:
            logger.warning("action_unknown", action=ref)
        return action

    # Data sources

    def data_source_value(self, source: DataSourceSpec, snapshot: Mapping[str, Any], scope: Mapping[str, Any]) -> Any:
        """static yields its constant, binding.path a direct read, binding.template a rendered string."""
        if isinstance(source, StaticDataSource):
            return source.value
        if isinstance(source, LocalBindingDataSource):
            return read_binding(f"local.{source.path}", snapshot, scope)
        if isinstance(source, BindingDataSource):
            if source.path is not None:
                return read_binding(source.path, snapshot, scope)
            return self.evaluator.interpolate(source.template or "", snapshot, scope)
        raise TypeError(f"Unknown data source {type(source).__name__}")

    def _text(self, node: Any, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> str | None:
        source_id = getattr(node, "data_source_id", None)
        if source_id is not None:
            source = self.document.data_sources.get(source_id)
            if source is None:
                logger.warning("data_source_unknown", data_source_id=source_id, node_id=node.id)
                return ""
            return stringify(self.data_source_value(source, snapshot, scope))
        inline = getattr(node, "data", {}).get("value")
        if inline is not None:
            return stringify(self.data_source_value(inline, snapshot, scope))
        if node.text is None:
            return None
        return self.evaluator.interpolate(node.text, snapshot, scope)

    # Bound inputs

    @staticmethod
    def bind_path(node: Any) -> str | None:
        """`bind` reads and writes document state; `localBind` the enclosing local state."""
        if node.bind is not None:
            return node.bind
        if node.local_bind is not None:
            return f"local.{node.local_bind}"
        return None

    def _bind(self, node: Any, fields: dict[str, Any], scope: dict[str, Any]) -> None:
        """Attach a valueChanged intent that writes the event value back to the bound path."""
        path = self.bind_path(node)
        if path is None:
            return
        write = SetStateAction(type="setState", path=path, value={"$expr": EVENT_LOCAL})
        actions = dict(fields.get("actions", {}))
        existing = actions.get(VALUE_CHANGED)
        if existing is not None:
            action: Any = SequenceAction(type="sequence", steps=[write, existing.action])
        else:
            action = write
        actions[VALUE_CHANGED] = BoundAction(action=action, locals=scope)
        fields["actions"] = actions

    # Kinds

    def _children(self, children: list[Any], snapshot: Mapping[str, Any], scope: dict[str, Any]) -> tuple[RenderNode, ...]:
        return tuple(self.resolve(child, snapshot, scope) for child in children)

    def _root(self, node: RootNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        props: dict[str, Any] = {"colorScheme": node.color_scheme}
        if node.background_color is not None:
            props["backgroundColor"] = normalize_color(node.background_color)
        return {"props": props, "children": self._children(node.children, snapshot, scope)}

    def _container(self, node: ContainerNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        props: dict[str, Any] = {}
        if node.alignment is not None:
            props["alignment"] = node.alignment
        if node.spacing is not None:
            props["spacing"] = node.spacing
        return {"props": props, "children": self._children(node.children, snapshot, scope)}

    def _label(self, node: LabelNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        return {"text": self._text(node, snapshot, scope)}

    def _button(self, node: ButtonNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        props: dict[str, Any] = {
            "isSelected": self._is_selected(node, snapshot, scope),
            "isDisabled": self._is_disabled(node, snapshot, scope),
            "fillWidth": node.fill_width,
        }
        if node.image is not None:
            props["image"] = self._image_source(node.image, snapshot, scope)
        return {"text": self._text(node, snapshot, scope), "props": props}

    def _textfield(self, node: TextFieldNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        placeholder = None
        if node.placeholder is not None:
            placeholder = self.evaluator.interpolate(node.placeholder, snapshot, scope)
        path = self.bind_path(node)
        value = stringify(read_binding(path, snapshot, scope)) if path else ""
        return {"placeholder": placeholder, "value": value}

    def _toggle(self, node: ToggleNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        path = self.bind_path(node)
        current = read_binding(path, snapshot, scope) if path else None
        text = self.evaluator.interpolate(node.text, snapshot, scope) if node.text is not None else None
        return {"text": text, "value": current is True}

    def _slider(self, node: SliderNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        path = self.bind_path(node)
        current = read_binding(path, snapshot, scope) if path else None
        value = float(current) if is_number(current) else node.min_value
        return {
            "value": min(max(value, node.min_value), node.max_value),
            "props": {"minValue": node.min_value, "maxValue": node.max_value},
        }

    def _image_source(self, image: ImageSource, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, str]:
        source: dict[str, str] = {}
        if image.system is not None:
            source["system"] = image.system
        if image.url is not None:
            source["url"] = self.evaluator.interpolate(image.url, snapshot, scope)
        if image.asset is not None:
            source["asset"] = image.asset
        return source

    def _image(self, node: ImageNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        source = self._image_source(node.image, snapshot, scope) if node.image is not None else {}
        if node.data_source_id is not None:
            spec = self.document.data_sources.get(node.data_source_id)
            if spec is None:
                logger.warning("data_source_unknown", data_source_id=node.data_source_id, node_id=node.id)
            else:
                source["url"] = stringify(self.data_source_value(spec, snapshot, scope))
        return {"props": {"image": source}}

    def _shape(self, node: ShapeNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        return {"props": {"shape": node.shape}}

    def _gradient(self, node: GradientNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        stops = []
        for stop in node.gradient_colors:
            resolved: dict[str, Any] = {"location": stop.location}
            for key, value in (("color", stop.color), ("lightColor", stop.light_color), ("darkColor", stop.dark_color)):
                if value is not None:
                    resolved[key] = normalize_color(value)
            stops.append(resolved)
        return {"props": {"colors": stops, "start": node.gradient_start, "end": node.gradient_end}}

    def _empty(self, node: Any, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        return {}

    def _section_layout(self, node: SectionLayoutNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        return {"layout": self.sections.resolve(node, snapshot, scope)}

    def _for_each(self, node: ForEachNode, snapshot: Mapping[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        """Expands to a container of the configured layout kind."""
        items = read_binding(node.items, snapshot, scope)
        if items is not None and not isinstance(items, list):
            logger.warning("for_each_not_array", path=node.items, type=type(items).__name__)
            items = None

        children: list[RenderNode] = []
        if items:
            for index, item in enumerate(items):
                local_scope = {
                    **scope,
                    node.item_variable: item,
                    node.index_variable: index,
                    REPEAT: (*scope.get(REPEAT, ()), index),
                }
                child = self.resolve(node.template, snapshot, local_scope)
                if child.id is not None:
                    child = child.model_copy(update={"id": f"{child.id}[{index}]"})
                children.append(child)
        elif node.empty_view is not None:
            children.append(self.resolve(node.empty_view, snapshot, scope))

        props: dict[str, Any] = {"repeated": len(items or [])}
        if node.alignment is not None:
            props["alignment"] = node.alignment
        if node.spacing is not None:
            props["spacing"] = node.spacing
        return {"kind": node.layout, "props": props, "children": tuple(children)}
