from typing import Optional
from fastapi import Depends, Header, HTTPException, Request, status

# Re-export database dependency
from .db import get_db

# Re-export authentication dependency
from .auth import get_current_user

from .core.settings import Settings, get_settings
from .services.ai.registry import BackendRegistry


def get_registry(request: Request) -> BackendRegistry:
    """Backend registry built once at startup"""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No extraction backend is configured"
        )
    return registry


def require_admin_key(
    x_api_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings)
) -> None:
    """Guard for the administrative surface"""
    if not settings.admin_api_key or x_api_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key"
        )


__all__ = ["get_db", "get_current_user", "get_registry", "get_settings", "require_admin_key"]
