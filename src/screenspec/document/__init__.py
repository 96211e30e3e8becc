"""Screen document schema and parsing."""

from .models import (
    ActionRef,
    ActionSpec,
    DataSourceSpec,
    DocumentDefinition,
    EdgeInsets,
    NodeSpec,
    SectionSpec,
    StyleSpec,
)
from .parser import DocumentParser, iter_nodes, parse_document, validate_document
from .versioning import CURRENT, CURRENT_IR, DocumentVersion

__all__ = [
    "ActionRef",
    "ActionSpec",
    "DataSourceSpec",
    "DocumentDefinition",
    "EdgeInsets",
    "NodeSpec",
    "SectionSpec",
    "StyleSpec",
    "DocumentParser",
    "iter_nodes",
    "parse_document",
    "validate_document",
    "DocumentVersion",
    "CURRENT",
    "CURRENT_IR",
]
