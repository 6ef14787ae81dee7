"""
Dependency injection container.

Holds the single instance of each board component for the lifetime of the
process. Components are registered either as ready instances or as factory
functions that receive the container and are invoked on first resolve.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from loguru import logger

T = TypeVar('T')

Factory = Callable[['IContainer'], Any]


class ServiceNotRegisteredException(Exception):
    """Raised when trying to resolve an unregistered service."""
    pass


class ServiceResolutionException(Exception):
    """Raised when a factory fails to build its service."""
    pass


class CircularDependencyException(Exception):
    """Raised when factories depend on each other in a cycle."""
    pass


class IContainer(ABC):
    """Interface for dependency injection containers."""

    @abstractmethod
    def register_instance(self, service_type: Type[T], instance: T) -> None:
        """Register a ready instance."""
        pass

    @abstractmethod
    def register_factory(self, service_type: Type[T], factory: Factory) -> None:
        """Register a factory called once, on first resolve."""
        pass

    @abstractmethod
    def resolve(self, service_type: Type[T]) -> T:
        """
        Resolve a service instance.

        Raises:
            ServiceNotRegisteredException: If service not registered
            ServiceResolutionException: If service cannot be built
        """
        pass

    @abstractmethod
    def try_resolve(self, service_type: Type[T]) -> Optional[T]:
        """Resolve a service instance, returning None on failure."""
        pass

    @abstractmethod
    def is_registered(self, service_type: Type[Any]) -> bool:
        """Check if a service type is registered."""
        pass

    @abstractmethod
    def get_registrations(self) -> Dict[Type[Any], Any]:
        """Registered types mapped to their instance or factory."""
        pass


class Container(IContainer):
    """Lightweight singleton-only dependency injection container."""

    def __init__(self) -> None:
        self._instances: Dict[Type[Any], Any] = {}
        self._factories: Dict[Type[Any], Factory] = {}
        self._resolution_stack: List[Type[Any]] = []

    def register_instance(self, service_type: Type[T], instance: T) -> None:
        self._factories.pop(service_type, None)
        self._instances[service_type] = instance
        logger.debug(f"Registered instance of {service_type.__name__}")

    def register_factory(self, service_type: Type[T], factory: Factory) -> None:
        self._instances.pop(service_type, None)
        self._factories[service_type] = factory
        logger.debug(f"Registered factory for {service_type.__name__}")

    def resolve(self, service_type: Type[T]) -> T:
        if service_type in self._instances:
            return self._instances[service_type]  # type: ignore[no-any-return]

        if service_type not in self._factories:
            raise ServiceNotRegisteredException(
                f"Service {service_type.__name__} is not registered")

        if service_type in self._resolution_stack:
            cycle = " -> ".join([t.__name__ for t in self._resolution_stack] +
                                [service_type.__name__])
            raise CircularDependencyException(
                f"Circular dependency detected: {cycle}")

        self._resolution_stack.append(service_type)
        try:
            instance = self._factories[service_type](self)
        except (ServiceNotRegisteredException, CircularDependencyException):
            raise
        except Exception as e:
            raise ServiceResolutionException(
                f"Failed to resolve {service_type.__name__}: {e}") from e
        finally:
            self._resolution_stack.pop()

        self._instances[service_type] = instance
        return instance  # type: ignore[no-any-return]

    def try_resolve(self, service_type: Type[T]) -> Optional[T]:
        try:
            return self.resolve(service_type)
        except (ServiceNotRegisteredException, ServiceResolutionException, CircularDependencyException):
            return None

    def is_registered(self, service_type: Type[Any]) -> bool:
        return service_type in self._instances or service_type in self._factories

    def get_registrations(self) -> Dict[Type[Any], Union[Any, Factory]]:
        registrations: Dict[Type[Any], Any] = dict(self._factories)
        registrations.update(self._instances)
        return registrations
