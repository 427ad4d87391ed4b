"""API dependencies for service wiring and actor identification"""

from typing import Optional

from fastapi import Header
from starlette.requests import HTTPConnection

from marine_workorders.services import ServiceContainer


def get_container(request: HTTPConnection) -> ServiceContainer:
    """
    Services for the configured tenant, built on first use.

    Tests install their own container on ``app.state.container`` beforehand.
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        container = ServiceContainer.from_settings()
        request.app.state.container = container
    return container


async def get_actor_id(x_actor_id: Optional[str] = Header(None)) -> Optional[str]:
    """
    Identity of the caller, recorded as created_by/changed_by.

    Args:
        x_actor_id: X-Actor-Id header set by the authenticating gateway

    Returns:
        Actor id or None when the header is absent
    """
    if x_actor_id is None or not x_actor_id.strip():
        return None
    return x_actor_id.strip()
