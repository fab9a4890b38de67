"""
FastAPI Dependencies.

The coordinator is built once per app in the lifespan (see api.main) and
read back from app.state; the caller id comes from the auth gateway.
"""
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from core.application.services import LifecycleCoordinator


def get_coordinator(request: Request) -> LifecycleCoordinator:
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return coordinator


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller id set by the upstream authentication layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return x_user_id.strip()
