"""Document Parser - JSON to DocumentDefinition with load-time validation."""

from typing import Any, Iterator

from pydantic import ValidationError as PydanticValidationError
from returns.result import Failure, Result, Success

from ..core.json import parse_json_object
from ..core.logging_config import get_logger
from ..core.validate import (
    MAX_DOCUMENT_SIZE,
    MAX_JSON_DEPTH,
    DocumentError,
    ValidationResult,
    validate_json_depth,
    validate_json_size,
)
from ..layout.validation import validate_section_layout
from ..styles.resolver import StyleResolver
from .models import (
    ButtonNode,
    ContainerNode,
    DocumentDefinition,
    ForEachNode,
    ImageNode,
    LabelNode,
    RootNode,
    SectionLayoutNode,
)
from .versioning import check_version

logger = get_logger(__name__)


def format_location(loc: tuple[Any, ...]) -> str:
    """`('root', 'vstack', 'children', 2)` -> `root.vstack.children[2]`"""
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out


def primary_error(errors: list[Any]) -> Any:
    """
    Pick the error that best explains a failed validation.

    A union such as `"name" | {action}` reports one error per branch. The
    branch expecting a plain string is skipped when another branch failed
    too, and of the rest the deepest location wins.
    """
    candidates = [error for error in errors if not (error["type"] == "string_type" and error["loc"][-1:] == ("str",))]
    return max(candidates or errors, key=lambda error: len(error["loc"]))


def iter_nodes(node: Any, location: str = "root") -> Iterator[tuple[Any, str]]:
    """Walk a node tree depth-first in declaration order, yielding (node, location)."""
    stack: list[tuple[Any, str]] = [(node, location)]
    while stack:
        current, where = stack.pop()
        yield current, where
        nested: list[tuple[Any, str]] = []
        if isinstance(current, (ContainerNode, RootNode)):
            nested.extend((child, f"{where}.children[{i}]") for i, child in enumerate(current.children))
        elif isinstance(current, ForEachNode):
            nested.append((current.template, f"{where}.template"))
            if current.empty_view is not None:
                nested.append((current.empty_view, f"{where}.emptyView"))
        elif isinstance(current, SectionLayoutNode):
            for s, section in enumerate(current.sections):
                base = f"{where}.sections[{s}]"
                if section.header is not None:
                    nested.append((section.header, f"{base}.header"))
                nested.extend(
                    (child, f"{base}.children[{i}]") for i, child in enumerate(section.children)
                )
                if section.item_template is not None:
                    nested.append((section.item_template, f"{base}.itemTemplate"))
                if section.footer is not None:
                    nested.append((section.footer, f"{base}.footer"))
        stack.extend(reversed(nested))


class DocumentParser:
    """
    Parses document JSON into an immutable DocumentDefinition.

    Fatal at load time: malformed JSON, schema violations including unknown
    node or action `type` tags, style cycles or dangling parents, and invalid
    section layouts. References that only matter at resolution time (style
    ids, data source ids, action names) are checked here too but only logged.
    """

    def __init__(self, max_size: int = MAX_DOCUMENT_SIZE, max_depth: int = MAX_JSON_DEPTH) -> None:
        self.max_size = max_size
        self.max_depth = max_depth

    def parse(self, content: str | bytes) -> DocumentDefinition:
        """
        Parse and validate document text.

        Args:
            content: Document JSON text

        Returns:
            Validated document

        Raises:
            DocumentError: With the location of the first problem
        """
        validate_json_size(content, self.max_size)
        data = parse_json_object(content)
        return self.parse_dict(data)

    def parse_dict(self, data: dict[str, Any]) -> DocumentDefinition:
        """Validate an already-decoded document object."""
        validate_json_depth(data, self.max_depth)
        try:
            document = DocumentDefinition.model_validate(data)
        except PydanticValidationError as e:
            first = primary_error(e.errors())
            location = format_location(tuple(first["loc"]))
            logger.error("document_invalid", location=location, error=first["msg"])
            raise DocumentError(first["msg"], location) from e

        self.validate(document)
        logger.info(
            "document_loaded",
            document_id=document.id,
            version=document.version,
            styles=len(document.styles),
            actions=len(document.actions),
        )
        return document

    def validate(self, document: DocumentDefinition) -> None:
        """Cross-reference checks that the schema alone cannot express."""
        check_version(document.version, document.id)
        StyleResolver(document.styles).validate()

        for node, where in iter_nodes(document.root):
            if node.state is not None and node.id is None and not isinstance(node, RootNode):
                raise DocumentError("a node declaring local state needs an id", where)
            if isinstance(node, SectionLayoutNode):
                validate_section_layout(node, where)
            self._check_references(document, node, where)

    @staticmethod
    def _check_references(document: DocumentDefinition, node: Any, where: str) -> None:
        style_ids = [node.style_id]
        if isinstance(node, ButtonNode) and node.styles is not None:
            style_ids += [node.styles.normal, node.styles.selected, node.styles.disabled]
        for style_id in style_ids:
            if style_id is not None and style_id not in document.styles:
                logger.warning("style_reference_unknown", style_id=style_id, location=where)

        if isinstance(node, (LabelNode, ButtonNode, ImageNode)):
            source_id = node.data_source_id
            if source_id is not None and source_id not in document.data_sources:
                logger.warning("data_source_unknown", data_source_id=source_id, location=where)

        for event, ref in node.actions.items():
            if isinstance(ref, str) and ref not in document.actions:
                logger.warning("action_reference_unknown", action=ref, event=event, location=where)


def parse_document(content: str | bytes) -> DocumentDefinition:
    """
    Convenience function to parse a document.

    Args:
        content: Document JSON text

    Returns:
        Validated DocumentDefinition
    """
    return DocumentParser().parse(content)


def validate_document(content: str | bytes) -> Result[DocumentDefinition, ValidationResult]:
    """
    Parse a document (Result pattern version).

    Returns:
        Success with the document, or Failure describing the first problem
    """
    try:
        return Success(parse_document(content))
    except DocumentError as e:
        return Failure(ValidationResult.from_error(e))
