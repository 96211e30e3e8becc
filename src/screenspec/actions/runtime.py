"""Action Runtime - executes action specs against a document's state."""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from returns.result import Failure, Success

from ..clients.transport import Transport, TransportError
from ..core.id import new_request_id
from ..core.logging_config import get_logger
from ..document.models import (
    ActionRef,
    AppendToArrayAction,
    BindingMessage,
    CustomAction,
    DismissAction,
    DocumentDefinition,
    NavigateAction,
    RemoveFromArrayAction,
    RequestAction,
    SequenceAction,
    SetStateAction,
    ShowAlertAction,
    ToggleInArrayAction,
    ToggleStateAction,
)
from ..expressions.evaluator import ExpressionEvaluator
from ..monitoring.metrics import MetricsCollector, metrics_collector
from ..render.nodes import BoundAction
from ..render.paths import LOCAL, LOCAL_SCOPE, LOCAL_STATE_KEY, local_state_path
from ..state.store import StateStore
from .presentation import (
    AlertButtonIntent,
    AlertIntent,
    DismissIntent,
    NavigateIntent,
    PresentationHost,
    RecordingPresentationHost,
)
from .registry import CustomActionRegistry

logger = get_logger(__name__)

EXPR_KEY = "$expr"
EVENT_LOCAL = "$event"


class ActionPhase(str, Enum):
    """Lifecycle of one leaf action."""

    IDLE = "idle"
    RESOLVING_PARAMETERS = "resolving_parameters"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ActionOutcome:
    """What happened to one action; sequences nest their steps."""

    action_type: str
    phases: list[ActionPhase] = field(default_factory=lambda: [ActionPhase.IDLE])
    error: str | None = None
    steps: list["ActionOutcome"] = field(default_factory=list)

    @property
    def phase(self) -> ActionPhase:
        return self.phases[-1]

    @property
    def succeeded(self) -> bool:
        return self.phase == ActionPhase.COMPLETED

    def advance(self, phase: ActionPhase) -> None:
        self.phases.append(phase)
        logger.debug("action_phase", action=self.action_type, phase=phase.value)


@dataclass(frozen=True)
class ActionContext:
    """
    Per-invocation inputs.

    Attributes:
        locals: Template locals visible to `$expr` payloads (forEach item/index)
        event: Value delivered by the control, exposed as `$event`
    """

    locals: Mapping[str, Any] = field(default_factory=dict)
    event: Any = None

    def scope(self) -> dict[str, Any]:
        scope = dict(self.locals)
        if self.event is not None:
            scope[EVENT_LOCAL] = self.event
        return scope


class LivenessToken:
    """Shared flag between a session and its runtime; revoked on teardown."""

    def __init__(self) -> None:
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def revoke(self) -> None:
        self._alive = False


class ActionRuntime:
    """
    Interprets action specs.

    Top-level executions queue on one lock, so actions for a document never
    interleave their writes. A `sequence` runs its steps in order inside the
    held lock; the first failed step aborts the rest of the sequence.
    Request failures are written to state, never raised.

    `after_action` runs once a top-level action finishes. `before_suspend`
    runs when a request is about to await the network, so hosts can render
    the loading state the action has written so far.
    """

    def __init__(
        self,
        store: StateStore,
        document: DocumentDefinition | None = None,
        evaluator: ExpressionEvaluator | None = None,
        transport: Transport | None = None,
        presentation: PresentationHost | None = None,
        registry: CustomActionRegistry | None = None,
        liveness: LivenessToken | None = None,
        after_action: Callable[[], None] | None = None,
        before_suspend: Callable[[], None] | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.store = store
        self.document = document
        self.evaluator = evaluator or ExpressionEvaluator()
        self.transport = transport
        self.presentation = presentation or RecordingPresentationHost()
        self.registry = registry or CustomActionRegistry()
        self.liveness = liveness or LivenessToken()
        self.after_action = after_action
        self.before_suspend = before_suspend
        self.metrics = metrics or metrics_collector
        self._lock = asyncio.Lock()

        self._handlers = {
            SetStateAction: self._set_state,
            ToggleStateAction: self._toggle_state,
            AppendToArrayAction: self._append_to_array,
            ToggleInArrayAction: self._toggle_in_array,
            RemoveFromArrayAction: self._remove_from_array,
            RequestAction: self._request,
            ShowAlertAction: self._show_alert,
            DismissAction: self._dismiss,
            NavigateAction: self._navigate,
            CustomAction: self._custom,
        }

    @property
    def is_alive(self) -> bool:
        return self.liveness.alive and not self.store.is_released

    async def execute(
        self, action: ActionRef | BoundAction, context: ActionContext | None = None
    ) -> ActionOutcome:
        """
        Run an action to completion after any queued action finishes.

        Args:
            action: Inline spec, action name, or a node's bound action
            context: Locals and event value for `$expr` payloads

        Returns:
            Outcome; a failure is reported here, not raised
        """
        context = context or ActionContext()
        if isinstance(action, BoundAction):
            context = ActionContext(locals={**action.locals, **context.locals}, event=context.event)
            action = action.action

        async with self._lock:
            start = time.perf_counter()
            outcome = await self._run(action, context.scope())
            self.metrics.record_action_duration(outcome.action_type, time.perf_counter() - start)
            if self.after_action is not None and self.is_alive:
                self.after_action()
        return outcome

    async def dispatch(self, name: str, event: Any = None) -> ActionOutcome:
        """Run a document-level named action."""
        return await self.execute(name, ActionContext(event=event))

    def lookup(self, ref: ActionRef) -> Any:
        if not isinstance(ref, str):
            return ref
        if self.document is None or ref not in self.document.actions:
            return None
        return self.document.actions[ref]

    async def _run(self, ref: ActionRef, scope: dict[str, Any]) -> ActionOutcome:
        action = self.lookup(ref)
        if action is None:
            logger.error("action_unknown", action=ref)
            outcome = ActionOutcome(action_type=str(ref))
            outcome.advance(ActionPhase.COMPLETED)
            return outcome

        if not self.is_alive:
            logger.info("action_skipped_released", action=action.type)
            outcome = ActionOutcome(action_type=action.type, error="document released")
            outcome.advance(ActionPhase.FAILED)
            return outcome

        if isinstance(action, SequenceAction):
            return await self._sequence(action, scope)
        return await self._leaf(action, scope)

    async def _sequence(self, action: SequenceAction, scope: dict[str, Any]) -> ActionOutcome:
        outcome = ActionOutcome(action_type=action.type)
        outcome.advance(ActionPhase.EXECUTING)
        for index, step in enumerate(action.steps):
            result = await self._run(step, scope)
            outcome.steps.append(result)
            if not result.succeeded:
                logger.warning(
                    "sequence_aborted",
                    step=index,
                    step_type=result.action_type,
                    remaining=len(action.steps) - index - 1,
                    error=result.error,
                )
                outcome.error = f"step {index} ({result.action_type}) failed: {result.error}"
                outcome.advance(ActionPhase.FAILED)
                return outcome
        outcome.advance(ActionPhase.COMPLETED)
        return outcome

    async def _leaf(self, action: Any, scope: dict[str, Any]) -> ActionOutcome:
        outcome = ActionOutcome(action_type=action.type)
        handler = self._handlers[type(action)]
        try:
            outcome.advance(ActionPhase.RESOLVING_PARAMETERS)
            scope = self._current_locals(scope)
            params = self._parameters(action, scope)
            outcome.advance(ActionPhase.EXECUTING)
            await handler(action, params, scope)
            outcome.advance(ActionPhase.COMPLETED)
        except Exception as e:
            logger.error("action_failed", action=action.type, error=str(e), exc_info=True)
            outcome.error = str(e)
            outcome.advance(ActionPhase.FAILED)
        self.metrics.record_action(action.type, outcome.phase.value)
        return outcome

    # Parameters

    def resolve_payload(self, value: Any, scope: Mapping[str, Any]) -> Any:
        """Replace every `{"$expr": ...}` inside a payload with its value against current state."""
        if isinstance(value, dict):
            if set(value) == {EXPR_KEY} and isinstance(value[EXPR_KEY], str):
                return self.evaluator.evaluate_value(value[EXPR_KEY], self.store.snapshot(), scope)
            return {key: self.resolve_payload(item, scope) for key, item in value.items()}
        if isinstance(value, list):
            return [self.resolve_payload(item, scope) for item in value]
        return value

    def _parameters(self, action: Any, scope: dict[str, Any]) -> dict[str, Any]:
        if isinstance(action, (SetStateAction, AppendToArrayAction, ToggleInArrayAction)):
            return {"value": self.resolve_payload(action.value, scope)}
        if isinstance(action, RemoveFromArrayAction):
            return {"value": self.resolve_payload(action.value, scope), "index": action.index}
        if isinstance(action, RequestAction):
            snapshot = self.store.snapshot()
            return {
                "url": self.evaluator.interpolate(action.url, snapshot, scope),
                "body": self.resolve_payload(action.body, scope),
                "headers": {
                    key: self.evaluator.interpolate(value, snapshot, scope)
                    for key, value in action.headers.items()
                },
                "query": self.resolve_payload(action.query_params, scope),
            }
        if isinstance(action, ShowAlertAction):
            snapshot = self.store.snapshot()
            message = action.message
            if isinstance(message, BindingMessage):
                message = message.template
            return {
                "title": self.evaluator.interpolate(action.title, snapshot, scope),
                "message": self.evaluator.interpolate(message, snapshot, scope) if message is not None else None,
            }
        if isinstance(action, NavigateAction):
            return {"destination": self.evaluator.interpolate(action.destination, self.store.snapshot(), scope)}
        if isinstance(action, CustomAction):
            return {"params": self.resolve_payload(action.params, scope)}
        return {}

    def _current_locals(self, scope: dict[str, Any]) -> dict[str, Any]:
        """Overlay local-state values written since the action was bound."""
        key = scope.get(LOCAL_SCOPE)
        if key is None:
            return scope
        stored = self.store.get(f"{LOCAL_STATE_KEY}.{key}")
        if not isinstance(stored, dict):
            return scope
        return {**scope, LOCAL: {**scope.get(LOCAL, {}), **stored}}

    def _target(self, path: str, scope: Mapping[str, Any]) -> str:
        """
        Store path for a state action.

        The first write to a local scope copies its declared values into the
        store, so toggles and array edits start from them.
        """
        target = local_state_path(path, scope)
        if target != path:
            storage = f"{LOCAL_STATE_KEY}.{scope[LOCAL_SCOPE]}"
            if self.store.get(storage) is None:
                self.store.set(storage, dict(scope.get(LOCAL, {})))
        return target

    # Leaf handlers

    async def _set_state(self, action: SetStateAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        self.store.set(self._target(action.path, scope), params["value"])

    async def _toggle_state(self, action: ToggleStateAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        self.store.toggle_state(self._target(action.path, scope))

    async def _append_to_array(self, action: AppendToArrayAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        self.store.append_to_array(self._target(action.path, scope), params["value"])

    async def _toggle_in_array(self, action: ToggleInArrayAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        self.store.toggle_in_array(self._target(action.path, scope), params["value"])

    async def _remove_from_array(
        self, action: RemoveFromArrayAction, params: dict[str, Any], scope: dict[str, Any]
    ) -> None:
        path = self._target(action.path, scope)
        if params["index"] is not None:
            self.store.remove_from_array(path, index=params["index"])
        else:
            self.store.remove_from_array(path, value=params["value"])

    async def _request(self, action: RequestAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        """
        loading=true, clear error, await the transport, write response or error, loading=false.

        The loading write is published through `before_suspend` before the
        transport is awaited. If the document is released while the call is
        in flight, nothing is written.
        """
        request_id = new_request_id()
        log = logger.bind(request_id=request_id, method=action.method, url=params["url"])

        if action.loading_path:
            self.store.set(action.loading_path, True)
        if action.error_path:
            self.store.set(action.error_path, None)

        follow_up = None
        try:
            if self.before_suspend is not None and self.is_alive:
                self.before_suspend()

            result = await self._perform(action, params, log)
            if not self.is_alive:
                log.info("request_result_dropped")
                return

            if isinstance(result, Success):
                self.metrics.record_request(action.method, "success")
                log.info("request_completed")
                if action.response_path:
                    self.store.set(action.response_path, result.unwrap())
                follow_up = action.on_success
            else:
                error = result.failure() if isinstance(result, Failure) else TransportError(str(result))
                self.metrics.record_request(action.method, "failure")
                log.warning("request_failed", error=error.message, status=error.status_code)
                if action.error_path:
                    self.store.set(action.error_path, error.to_state())
                follow_up = action.on_error
        finally:
            if action.loading_path and self.is_alive:
                self.store.set(action.loading_path, False)

        if follow_up is not None:
            result_outcome = await self._run(follow_up, scope)
            if not result_outcome.succeeded:
                log.warning("request_follow_up_failed", error=result_outcome.error)

    async def _perform(self, action: RequestAction, params: dict[str, Any], log: Any) -> Any:
        if self.transport is None:
            log.error("request_no_transport")
            return Failure(TransportError("No transport configured", code="no_transport"))

        log.info("request_started")
        try:
            return await self.transport.perform(
                action.method,
                params["url"],
                body=params["body"],
                headers=params["headers"] or None,
                query=params["query"] or None,
            )
        except Exception as e:
            log.error("request_transport_raised", error=str(e), exc_info=True)
            return Failure(TransportError(f"Transport error: {e}", code="transport_exception"))

    async def _show_alert(self, action: ShowAlertAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        buttons = tuple(
            AlertButtonIntent(
                label=button.label,
                style=button.style,
                action=self.lookup(button.action) if button.action is not None else None,
            )
            for button in action.buttons
        )
        self.presentation.show_alert(AlertIntent(title=params["title"], message=params["message"], buttons=buttons))

    async def _dismiss(self, action: DismissAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        self.presentation.dismiss(DismissIntent())

    async def _navigate(self, action: NavigateAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        if not params["destination"]:
            logger.error("navigate_destination_empty", destination=action.destination)
            return
        self.presentation.navigate(
            NavigateIntent(destination=params["destination"], presentation=action.presentation)
        )

    async def _custom(self, action: CustomAction, params: dict[str, Any], scope: dict[str, Any]) -> None:
        handler = self.registry.get(action.name)
        if handler is None:
            logger.error("custom_action_unregistered", action=action.name)
            return
        await handler(params["params"], self.store)
