"""Presentation intents forwarded to the host."""

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class AlertButtonIntent:
    label: str
    style: str = "default"
    action: Any = None  # ActionSpec to run when tapped, already dereferenced


@dataclass(frozen=True)
class AlertIntent:
    title: str
    message: str | None = None
    buttons: tuple[AlertButtonIntent, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DismissIntent:
    pass


@dataclass(frozen=True)
class NavigateIntent:
    destination: str
    presentation: str = "push"


class PresentationHost(Protocol):
    """Host surface that turns intents into UI chrome."""

    def show_alert(self, intent: AlertIntent) -> None:
        ...

    def dismiss(self, intent: DismissIntent) -> None:
        ...

    def navigate(self, intent: NavigateIntent) -> None:
        ...


class RecordingPresentationHost:
    """Host that records intents in order; the default when none is supplied."""

    def __init__(self) -> None:
        self.intents: list[AlertIntent | DismissIntent | NavigateIntent] = []

    def show_alert(self, intent: AlertIntent) -> None:
        self.intents.append(intent)

    def dismiss(self, intent: DismissIntent) -> None:
        self.intents.append(intent)

    def navigate(self, intent: NavigateIntent) -> None:
        self.intents.append(intent)
