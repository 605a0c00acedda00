from typing import List, Optional

from fastapi import APIRouter
from pydantic import Field

from mentorhub.api.schemas import CamelModel
from mentorhub.core.deps import ConnectionServiceDep, CurrentUserDep

router = APIRouter(prefix="/connections", tags=["connections"])

# --- Schemas ---

class TargetUserPayload(CamelModel):
    target_user_id: str = Field(min_length=1)

class ConnectionActionResponse(CamelModel):
    success: bool
    connected: Optional[bool] = None

class ProfileSummary(CamelModel):
    id: str
    name: str
    avatar_url: Optional[str] = None

class RequestListResponse(CamelModel):
    requests: List[ProfileSummary]

class ConnectionListResponse(CamelModel):
    connections: List[ProfileSummary]

# --- Endpoints ---

@router.post("/request", response_model=ConnectionActionResponse, response_model_exclude_none=True)
async def send_connection_request(payload: TargetUserPayload, user_id: CurrentUserDep, service: ConnectionServiceDep):
    return await service.send(user_id, payload.target_user_id)


@router.post("/accept", response_model=ConnectionActionResponse, response_model_exclude_none=True)
async def accept_connection_request(payload: TargetUserPayload, user_id: CurrentUserDep, service: ConnectionServiceDep):
    return await service.accept(user_id, payload.target_user_id)


@router.post("/decline", response_model=ConnectionActionResponse, response_model_exclude_none=True)
async def decline_connection_request(payload: TargetUserPayload, user_id: CurrentUserDep, service: ConnectionServiceDep):
    return await service.decline(user_id, payload.target_user_id)


@router.get("/requests/incoming", response_model=RequestListResponse)
async def fetch_incoming_requests(user_id: CurrentUserDep, service: ConnectionServiceDep):
    return await service.fetch_incoming(user_id)


@router.get("/requests/outgoing", response_model=RequestListResponse)
async def fetch_outgoing_requests(user_id: CurrentUserDep, service: ConnectionServiceDep):
    return await service.fetch_outgoing(user_id)


@router.get("", response_model=ConnectionListResponse)
async def fetch_connections(user_id: CurrentUserDep, service: ConnectionServiceDep):
    return await service.fetch_connections(user_id)
