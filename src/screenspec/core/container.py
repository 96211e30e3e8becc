"""Dependency Injection Container."""

from injector import Injector, Module, provider, singleton

from ..actions.registry import CustomActionRegistry
from ..clients.transport import HttpTransport, Transport
from ..expressions.evaluator import ExpressionEvaluator
from ..monitoring.metrics import MetricsCollector, metrics_collector
from .config import Settings, get_settings
from .logging_config import configure_from_settings


class CoreModule(Module):
    """Core dependencies shared by every session."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_transport(self, settings: Settings) -> Transport:
        """Provide HTTP transport with circuit breaker."""
        return HttpTransport(
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            fail_max=settings.breaker_fail_max,
            reset_timeout=settings.breaker_reset_timeout,
        )

    @singleton
    @provider
    def provide_registry(self) -> CustomActionRegistry:
        """Provide custom action registry singleton."""
        return CustomActionRegistry()

    @singleton
    @provider
    def provide_evaluator(self, settings: Settings) -> ExpressionEvaluator:
        """Provide expression evaluator; its compile cache is shared across sessions."""
        return ExpressionEvaluator(cache_size=settings.expression_cache_size)

    @singleton
    @provider
    def provide_metrics(self) -> MetricsCollector:
        return metrics_collector


def create_container(settings: Settings | None = None) -> Injector:
    """Create the injector for a host process and route package logs per settings."""
    settings = settings or get_settings()
    configure_from_settings(settings)
    return Injector([CoreModule(settings)])
