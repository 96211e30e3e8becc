"""Document and render-tree schema versions.

Two versions travel with a document. The document schema version is the
author-facing JSON format and is declared in the document's `version` field.
The render-tree version is the contract with renderers and is stamped on
every RenderTree.
"""

from dataclasses import dataclass

from ..core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, order=True)
class DocumentVersion:
    """
    A `major.minor.patch` version; ordering compares the components in turn.

    Examples:
        >>> DocumentVersion.parse("1.2")
        DocumentVersion(major=1, minor=2, patch=0)
        >>> DocumentVersion.parse("1.2.3.4") is None
        True
    """

    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "DocumentVersion | None":
        """Parse "1.2" or "1.2.3"; anything else yields None."""
        parts = text.strip().split(".")
        if not 2 <= len(parts) <= 3 or not all(part.isdigit() for part in parts):
            return None
        return cls(*(int(part) for part in parts))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


CURRENT = DocumentVersion(0, 1, 0)
"""Newest document schema this package understands."""

CURRENT_IR = DocumentVersion(0, 1, 0)
"""Render-tree schema produced by DocumentResolver."""


def check_version(declared: str, document_id: str | None = None) -> DocumentVersion | None:
    """
    Log when a declared version is unreadable or newer than `CURRENT`.

    Neither case stops a load: unknown fields are ignored, so a newer document
    usually still renders.
    """
    version = DocumentVersion.parse(declared)
    if version is None:
        logger.warning("document_version_invalid", document_id=document_id, version=declared)
    elif version > CURRENT:
        logger.warning(
            "document_version_unsupported",
            document_id=document_id,
            version=str(version),
            supported=str(CURRENT),
        )
    return version
