"""
FastAPI dependency injection utilities.

These functions give routes access to the container, the configuration and
the relay. They accept an HTTPConnection so HTTP and WebSocket routes can
share them.
"""

from typing import Any, Type, TypeVar

from fastapi import Depends, HTTPException, status
from starlette.requests import HTTPConnection

from ...application.container import IContainer
from ...application.relay import PushRelay
from ...infrastructure.config.models import ApplicationConfig

T = TypeVar('T')


def get_container(connection: HTTPConnection) -> IContainer:
    """
    Get the dependency injection container from the application state.

    Raises:
        HTTPException: If container is not available
    """
    if not hasattr(connection.app.state, "container"):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application container not available"
        )

    return connection.app.state.container  # type: ignore[no-any-return]


def get_config(connection: HTTPConnection) -> ApplicationConfig:
    """
    Get the application configuration from the application state.

    Raises:
        HTTPException: If configuration is not available
    """
    if not hasattr(connection.app.state, "config"):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application configuration not available"
        )

    return connection.app.state.config  # type: ignore[no-any-return]


def get_component(service_type: Type[T]) -> Any:
    """Create a dependency function that resolves ``service_type``."""
    def _get_component(container: IContainer = Depends(get_container)) -> T:
        try:
            return container.resolve(service_type)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Service {service_type.__name__} not available: {e}"
            )

    return _get_component


get_relay = get_component(PushRelay)
