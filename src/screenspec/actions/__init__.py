"""Action execution: runtime, custom handlers, presentation intents."""

from .presentation import (
    AlertButtonIntent,
    AlertIntent,
    DismissIntent,
    NavigateIntent,
    PresentationHost,
    RecordingPresentationHost,
)
from .registry import CustomActionHandler, CustomActionRegistry
from .runtime import ActionContext, ActionOutcome, ActionPhase, ActionRuntime, LivenessToken

__all__ = [
    # Runtime
    "ActionRuntime",
    "ActionContext",
    "ActionOutcome",
    "ActionPhase",
    "LivenessToken",
    # Custom actions
    "CustomActionHandler",
    "CustomActionRegistry",
    # Presentation
    "PresentationHost",
    "RecordingPresentationHost",
    "AlertIntent",
    "AlertButtonIntent",
    "DismissIntent",
    "NavigateIntent",
]
