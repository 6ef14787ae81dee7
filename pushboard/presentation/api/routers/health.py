"""
Health check API endpoints.

This module provides health check endpoints for monitoring
the board and its lifecycle components.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ....application.container import IContainer
from ....core.interfaces.lifecycle import IHealthCheckable
from ....infrastructure.config.models import ApplicationConfig
from ..dependencies import get_config, get_container

router = APIRouter()


def _application_info(config: ApplicationConfig) -> Dict[str, Any]:
    return {
        "name": config.name,
        "version": config.version,
        "environment": config.environment
    }


@router.get("/")
async def health_check(config: ApplicationConfig = Depends(get_config)) -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns overall application health status.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "application": _application_info(config)
    }


@router.get("/detailed")
async def detailed_health_check(
    container: IContainer = Depends(get_container),
    config: ApplicationConfig = Depends(get_config)
) -> Dict[str, Any]:
    """
    Detailed health check with component status.

    Every registered component that reports health is asked for it; a single
    unhealthy component marks the whole board as degraded.
    """
    components_health: Dict[str, Any] = {}
    overall_healthy = True

    for service_type in container.get_registrations():
        component = container.try_resolve(service_type)
        if not isinstance(component, IHealthCheckable):
            continue

        component_name = service_type.__name__
        try:
            health_info = await component.check_health()
        except Exception as e:
            health_info = {
                "healthy": False,
                "status": "error",
                "details": {"error": str(e)}
            }

        components_health[component_name] = health_info
        if not health_info.get("healthy", True):
            overall_healthy = False

    return {
        "status": "healthy" if overall_healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "application": _application_info(config),
        "components": components_health
    }


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Simple endpoint to indicate the application is running."""
    return {
        "alive": True,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
