"""
Service Container - Dependency Injection Container for Quizboard
Manages service creation, dependencies, and lifecycle.
"""

from typing import Dict, Any, List, Optional, Callable
import inspect
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class ServiceLifecycle(Enum):
    """Service lifecycle management options"""
    SINGLETON = "singleton"  # One instance per container
    TRANSIENT = "transient"  # New instance every time


class ServiceDefinition:
    """Definition of how a service should be created"""

    def __init__(
        self,
        name: str,
        factory: Callable,
        dependencies: List[str] = None,
        lifecycle: ServiceLifecycle = ServiceLifecycle.SINGLETON
    ):
        self.name = name
        self.factory = factory
        self.dependencies = dependencies or []
        self.lifecycle = lifecycle


class CircularDependencyError(Exception):
    """Raised when circular dependency is detected"""
    pass


class ServiceNotFoundError(Exception):
    """Raised when requested service is not registered"""
    pass


class ServiceContainer:
    """
    Dependency Injection Container for the lobby services.

    Dependencies are listed explicitly at registration; constructor
    parameter names are never inspected. External objects created by the
    framework (the SocketIO server) are injected with set_external_dependency.
    """

    def __init__(self):
        self._services: Dict[str, ServiceDefinition] = {}
        self._instances: Dict[str, Any] = {}
        self._creating: List[str] = []  # Resolution stack, for cycle reporting

    def register(
        self,
        name: str,
        factory: Callable,
        dependencies: List[str] = None,
        lifecycle: ServiceLifecycle = ServiceLifecycle.SINGLETON
    ) -> 'ServiceContainer':
        """
        Register a service with the container.

        Args:
            name: Service name for retrieval
            factory: Class or function to create the service
            dependencies: Service names passed positionally to the factory
            lifecycle: How the service instance should be managed

        Returns:
            Self for method chaining
        """
        if name in self._services:
            raise ValueError(f"Service '{name}' is already registered")

        if not callable(factory):
            raise ValueError(f"Factory for '{name}' must be callable")

        self._services[name] = ServiceDefinition(name, factory, dependencies, lifecycle)
        return self

    def configure_services(self) -> 'ServiceContainer':
        """Register all Quizboard services with their dependencies."""
        from config_factory import ConfigurationFactory
        from src.store.session_store import InMemorySessionStore
        from src.services.validation_service import ValidationService
        from src.services.error_response_factory import ErrorResponseFactory
        from src.services.admin_token_service import AdminTokenService
        from src.services.concurrency_control_service import ConcurrencyControlService
        from src.services.membership_service import MembershipService
        from src.services.connection_registry import ConnectionRegistry
        from src.services.live_channel import LiveChannel
        from src.services.lobby_coordinator import LobbyCoordinator
        from src.services.inactivity_sweep_service import InactivitySweepService

        self.register('ConfigurationFactory', ConfigurationFactory)

        # No dependencies
        self.register('ValidationService', ValidationService)
        self.register('ErrorResponseFactory', ErrorResponseFactory)
        self.register('AdminTokenService', AdminTokenService)
        self.register('SessionStore', InMemorySessionStore)
        self.register('ConcurrencyControlService', ConcurrencyControlService)
        self.register('ConnectionRegistry', ConnectionRegistry)

        self.register('MembershipService', MembershipService,
                      dependencies=['SessionStore', 'ConcurrencyControlService'])

        # socketio is injected as an external dependency
        self.register('LiveChannel', LiveChannel, dependencies=['socketio', 'ConnectionRegistry'])

        self.register('LobbyCoordinator', LobbyCoordinator,
                      dependencies=['MembershipService', 'ConnectionRegistry', 'LiveChannel'])

        self.register('InactivitySweepService', InactivitySweepService,
                      dependencies=['LobbyCoordinator', 'ConnectionRegistry', 'MembershipService',
                                    'ConcurrencyControlService'])

        return self

    def set_external_dependency(self, name: str, instance: Any) -> 'ServiceContainer':
        """
        Set an external dependency that's created outside the container.
        Useful for Flask-SocketIO and similar framework objects.
        """
        self._instances[name] = instance
        return self

    def get(self, name: str) -> Any:
        """
        Get a service instance, creating it if necessary.

        Raises:
            ServiceNotFoundError: If service is not registered
            CircularDependencyError: If circular dependency detected
        """
        if name in self._instances:
            return self._instances[name]

        if name not in self._services:
            raise ServiceNotFoundError(f"Service '{name}' is not registered")

        return self._create_service(self._services[name])

    def _create_service(self, service_def: ServiceDefinition) -> Any:
        name = service_def.name
        if name in self._creating:
            cycle = ' -> '.join(self._creating + [name])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}")

        self._creating.append(name)
        try:
            dependencies = [self.get(dep_name) for dep_name in service_def.dependencies]
            instance = service_def.factory(*dependencies)
        finally:
            self._creating.pop()

        if service_def.lifecycle == ServiceLifecycle.SINGLETON:
            self._instances[name] = instance

        if inspect.isclass(service_def.factory):
            logger.debug(f"Created service {name}")
        return instance

    def has_service(self, name: str) -> bool:
        """Check if a service is registered"""
        return name in self._services

    def is_created(self, name: str) -> bool:
        return name in self._instances

    def get_service_names(self) -> List[str]:
        return list(self._services.keys())

    def validate_dependencies(self) -> Dict[str, List[str]]:
        """
        Validate all service dependencies can be resolved.

        Returns:
            Dictionary mapping service names to lists of missing dependencies
        """
        issues = {}
        for name, service_def in self._services.items():
            missing_deps = [
                dep for dep in service_def.dependencies
                if not self.has_service(dep) and dep not in self._instances
            ]
            if missing_deps:
                issues[name] = missing_deps
        return issues

    def shutdown(self) -> None:
        """Stop the background sweep and close the connection registry, if they were created."""
        if self.is_created('InactivitySweepService'):
            self._instances['InactivitySweepService'].stop()
        if self.is_created('ConnectionRegistry'):
            self._instances['ConnectionRegistry'].shutdown()

    def clear(self) -> 'ServiceContainer':
        """Clear all services and instances (useful for testing)"""
        self._services.clear()
        self._instances.clear()
        self._creating.clear()
        return self

    def __repr__(self) -> str:
        return f"ServiceContainer(services={len(self._services)}, instances={len(self._instances)})"


# Global container instance for the application
_app_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Get the global application service container"""
    global _app_container
    if _app_container is None:
        _app_container = ServiceContainer()
    return _app_container


def configure_container(socketio=None) -> ServiceContainer:
    """
    Configure the global service container with Quizboard services.

    Args:
        socketio: Flask-SocketIO instance

    Returns:
        Configured service container
    """
    container = get_container()
    container.clear()

    if socketio is not None:
        container.set_external_dependency('socketio', socketio)

    container.configure_services()
    return container


def reset_container() -> None:
    """Drop the global container so the next get_container() starts empty (for tests)."""
    global _app_container
    _app_container = None
