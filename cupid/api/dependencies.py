"""FastAPI dependencies: caller identity and the service container."""

from typing import Optional

from fastapi import Depends, Header, Request

from cupid.config import get_settings
from cupid.services.container import ServiceContainer
from cupid.utils.errors import AuthenticationError, ForbiddenError


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Read the caller ID set by the upstream identity provider.

    The gateway has already authenticated the caller; this layer trusts the header.
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError("Authentication required")
    return x_user_id.strip()


def require_admin(user_id: str = Depends(get_current_user_id)) -> str:
    if user_id not in get_settings().admin_ids:
        raise ForbiddenError("Admin access required", details={"user_id": user_id})
    return user_id
