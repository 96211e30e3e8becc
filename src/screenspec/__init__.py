"""
screenspec - declarative screen documents resolved against live state.

A document (JSON) describes a node tree, named styles, state, data sources
and actions. DocumentSession loads it, resolves a RenderTree from the current
state and re-resolves after actions mutate that state.
"""

from .actions import (
    ActionContext,
    ActionOutcome,
    ActionPhase,
    ActionRuntime,
    CustomActionRegistry,
    LivenessToken,
    PresentationHost,
    RecordingPresentationHost,
)
from .clients import HttpTransport, Transport, TransportError
from .core import DocumentError, ScreenSpecError, Settings, configure_logging, create_container, get_settings
from .document import DocumentDefinition, DocumentParser, parse_document, validate_document
from .expressions import ExpressionEvaluator
from .layout import SectionLayoutResolver
from .render import DocumentResolver, RenderNode, RenderTree
from .session import DocumentSession
from .state import StateChange, StateStore
from .styles import StyleResolver

__version__ = "0.1.0"

__all__ = [
    "DocumentSession",
    # Documents
    "DocumentDefinition",
    "DocumentParser",
    "parse_document",
    "validate_document",
    # Resolution
    "DocumentResolver",
    "SectionLayoutResolver",
    "StyleResolver",
    "ExpressionEvaluator",
    "RenderNode",
    "RenderTree",
    # State
    "StateStore",
    "StateChange",
    # Actions
    "ActionRuntime",
    "ActionContext",
    "ActionOutcome",
    "ActionPhase",
    "LivenessToken",
    "CustomActionRegistry",
    "PresentationHost",
    "RecordingPresentationHost",
    # Transport
    "Transport",
    "HttpTransport",
    "TransportError",
    # Core
    "Settings",
    "get_settings",
    "configure_logging",
    "create_container",
    "ScreenSpecError",
    "DocumentError",
]
