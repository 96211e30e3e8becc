"""
Document Session
One live document: state, resolution and actions wired together
"""

from typing import Any, Callable

from pydantic import TypeAdapter

from .actions.presentation import PresentationHost
from .actions.registry import CustomActionRegistry
from .actions.runtime import ActionContext, ActionOutcome, ActionRuntime, LivenessToken
from .clients.transport import Transport
from .core.config import Settings, get_settings
from .core.id import generate_raw, new_session_id
from .core.logging_config import LogContext, get_logger
from .core.validate import DocumentError
from .document.models import ActionRef, DocumentDefinition
from .document.parser import DocumentParser
from .expressions.evaluator import ExpressionEvaluator
from .monitoring.metrics import MetricsCollector, metrics_collector
from .render.nodes import RenderTree
from .render.resolver import DocumentResolver
from .state.store import StateStore
from .styles.resolver import StyleResolver

logger = get_logger(__name__)

TreeListener = Callable[[RenderTree, set[str]], None]
"""listener(tree, dirty_paths) called after each re-resolution"""

ON_APPEAR = "onAppear"
ON_DISAPPEAR = "onDisappear"

_action_adapter: TypeAdapter[ActionRef] = TypeAdapter(ActionRef)


class DocumentSession:
    """
    Owns the store, resolver and runtime for one document instance.

    After every top-level action that leaves dirty state paths, the whole
    tree is re-resolved and listeners receive the new tree along with the
    paths that changed.

    Examples:
        >>> session = DocumentSession.from_json(text, transport=HttpTransport())
        >>> async with session:
        ...     await session.dispatch("save", "onTap")
        ...     session.tree.find("status").text
    """

    def __init__(
        self,
        document: DocumentDefinition,
        transport: Transport | None = None,
        presentation: PresentationHost | None = None,
        registry: CustomActionRegistry | None = None,
        evaluator: ExpressionEvaluator | None = None,
        settings: Settings | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.id = new_session_id()
        self.document = document
        self.metrics = metrics or metrics_collector
        self.evaluator = evaluator or ExpressionEvaluator(cache_size=settings.expression_cache_size)
        self.store = StateStore(document.state)
        self.styles = StyleResolver(document.styles, cache_size=settings.style_cache_size)
        self.resolver = DocumentResolver(document, self.styles, self.evaluator, self.metrics)
        self.liveness = LivenessToken()
        self.runtime = ActionRuntime(
            store=self.store,
            document=document,
            evaluator=self.evaluator,
            transport=transport,
            presentation=presentation,
            registry=registry,
            liveness=self.liveness,
            after_action=self.refresh,
            before_suspend=self.refresh,
            metrics=self.metrics,
        )
        self._listeners: dict[str, TreeListener] = {}
        self._opened = False

        with self._log_context():
            self._tree = self.resolver.resolve_tree(self.store.snapshot())
        self.store.consume_dirty_paths()

    @classmethod
    def from_json(cls, content: str | bytes, settings: Settings | None = None, **kwargs: Any) -> "DocumentSession":
        """
        Parse document text and open a session on it.

        Raises:
            DocumentError: If the document fails to load
        """
        settings = settings or get_settings()
        metrics = kwargs.get("metrics") or metrics_collector
        parser = DocumentParser(max_size=settings.max_document_size, max_depth=settings.max_document_depth)
        try:
            document = parser.parse(content)
        except DocumentError:
            metrics.record_document_load("failure")
            raise
        metrics.record_document_load("success")
        return cls(document, settings=settings, **kwargs)

    @property
    def tree(self) -> RenderTree:
        return self._tree

    @property
    def is_open(self) -> bool:
        return self._opened and self.liveness.alive

    def subscribe(self, listener: TreeListener) -> str:
        token = generate_raw()
        self._listeners[token] = listener
        return token

    def unsubscribe(self, token: str) -> bool:
        return self._listeners.pop(token, None) is not None

    def refresh(self) -> RenderTree:
        """Re-resolve if state changed since the last pass."""
        if not self.store.has_dirty_paths:
            return self._tree

        dirty = self.store.consume_dirty_paths()
        with self._log_context():
            self._tree = self.resolver.resolve_tree(self.store.snapshot())
            logger.debug("tree_refreshed", dirty=sorted(dirty))
            for listener in list(self._listeners.values()):
                try:
                    listener(self._tree, dirty)
                except Exception as e:
                    logger.error("tree_listener_failed", error=str(e), exc_info=True)
        return self._tree

    async def open(self) -> None:
        """Mark the session live and run the root's onAppear action."""
        if self._opened:
            return
        self._opened = True
        self.metrics.sessions_active.inc()
        with self._log_context():
            logger.info("session_opened")
            await self._lifecycle(ON_APPEAR)

    async def close(self) -> None:
        """
        Run onDisappear, then revoke liveness and release the store.

        onDisappear queues behind any action already running. Anything still
        in flight once the store is released completes without writing state.
        """
        if not self.liveness.alive:
            return
        with self._log_context():
            if self._opened:
                await self._lifecycle(ON_DISAPPEAR)
            self.teardown()

    def teardown(self) -> None:
        """Revoke liveness and release state immediately."""
        if not self.liveness.alive:
            return
        self.liveness.revoke()
        self.store.release()
        self._listeners.clear()
        if self._opened:
            self.metrics.sessions_active.dec()
        logger.info("session_closed", session_id=self.id, document_id=self.document.id)

    async def dispatch(self, node_id: str, event: str, value: Any = None) -> ActionOutcome | None:
        """
        Deliver a control event to the action bound on a node.

        Args:
            node_id: Id of a node in the current tree
            event: Event name, e.g. "onTap" or "valueChanged"
            value: Event value, visible to payloads as `$event`

        Returns:
            Outcome, or None when the node has no action for the event
        """
        node = self._tree.find(node_id)
        bound = node.actions.get(event) if node is not None else None
        if bound is None:
            logger.warning("event_unhandled", node_id=node_id, event_name=event)
            return None
        with self._log_context():
            return await self.runtime.execute(bound, ActionContext(event=value))

    async def perform(self, action: ActionRef | dict[str, Any], value: Any = None) -> ActionOutcome:
        """Run an inline action, plain action data, or a document-level action name."""
        if isinstance(action, dict):
            action = _action_adapter.validate_python(action)
        with self._log_context():
            return await self.runtime.execute(action, ActionContext(event=value))

    async def __aenter__(self) -> "DocumentSession":
        await self.open()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _lifecycle(self, event: str) -> None:
        ref = self.document.root.actions.get(event)
        if ref is not None:
            await self.runtime.execute(self.resolver.lookup_action(ref) or ref)

    def _log_context(self) -> LogContext:
        return LogContext(document_id=self.document.id, session_id=self.id)
