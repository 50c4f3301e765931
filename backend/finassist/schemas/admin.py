from pydantic import BaseModel
from typing import Dict, List, Optional


class BackendListResponse(BaseModel):
    active: Optional[str]
    backends: List[str]


class SwitchBackendRequest(BaseModel):
    name: str


class SwitchBackendResponse(BaseModel):
    switched: bool
    active: Optional[str]


class BackendHealthResponse(BaseModel):
    healthy: bool
    provider: str
    model: Optional[str] = None
    error: Optional[str] = None


class HealthAllResponse(BaseModel):
    active: Optional[str]
    backends: Dict[str, BackendHealthResponse]
