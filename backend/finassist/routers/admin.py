from fastapi import APIRouter, Depends
import logging

from ..dependencies import get_registry, require_admin_key
from ..schemas import (
    BackendListResponse,
    SwitchBackendRequest,
    SwitchBackendResponse,
    BackendHealthResponse,
    HealthAllResponse
)
from ..services.ai.registry import BackendRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


@router.get("/backends", response_model=BackendListResponse)
def list_backends(registry: BackendRegistry = Depends(get_registry)):
    return BackendListResponse(active=registry.active_name, backends=registry.list_names())


@router.post("/backends/switch", response_model=SwitchBackendResponse)
def switch_backend(request: SwitchBackendRequest, registry: BackendRegistry = Depends(get_registry)):
    """Hot-swap the active backend. Unknown names keep the current one."""
    switched = registry.set_active(request.name)
    if switched:
        logger.info(f"Admin switched extraction backend to '{registry.active_name}'")
    return SwitchBackendResponse(switched=switched, active=registry.active_name)


@router.get("/health", response_model=HealthAllResponse)
async def health_all(registry: BackendRegistry = Depends(get_registry)):
    results = await registry.health_all()
    return HealthAllResponse(
        active=registry.active_name,
        backends={name: BackendHealthResponse(**health.to_dict()) for name, health in results.items()},
    )
