from typing import List, Literal, Optional

from fastapi import APIRouter, Path
from pydantic import Field

from mentorhub.api.connections import ProfileSummary
from mentorhub.api.schemas import CamelModel
from mentorhub.core.deps import CurrentUserDep, GroupServiceDep

router = APIRouter(prefix="/groups", tags=["groups"])

# --- Schemas ---

class CreateGroupPayload(CamelModel):
    group_name: str = Field(min_length=1)
    initial_members: List[str] = Field(default_factory=list)

class CreateGroupResponse(CamelModel):
    id: str
    name: str
    members: List[str]

class DeleteGroupResponse(CamelModel):
    success: bool
    group_id: str

class ManageParticipantsPayload(CamelModel):
    chat_id: str = Field(min_length=1)
    participant_id: str = Field(min_length=1)
    action: Literal["add", "remove"]

class ManageParticipantsResponse(CamelModel):
    success: bool
    message: str

class AddMemberPayload(CamelModel):
    group_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)

class GroupData(CamelModel):
    name: str
    owner_id: str
    admin_ids: List[str]
    members: List[ProfileSummary]

class AddMemberResponse(CamelModel):
    success: bool
    group_id: str
    message: str
    group_data: GroupData

class GroupSummary(CamelModel):
    id: str
    name: str
    members: List[ProfileSummary]
    owner_id: str
    admin_ids: List[str]
    created_at: Optional[str] = None

class GroupListResponse(CamelModel):
    success: bool
    groups: List[GroupSummary]

# --- Endpoints ---

@router.post("", response_model=CreateGroupResponse)
async def create_group_chat(payload: CreateGroupPayload, user_id: CurrentUserDep, service: GroupServiceDep):
    return await service.create(user_id, payload.group_name, payload.initial_members)


@router.delete("/{group_id}", response_model=DeleteGroupResponse)
async def delete_group_chat(user_id: CurrentUserDep, service: GroupServiceDep, group_id: str = Path(...)):
    return await service.delete(user_id, group_id)


@router.post("/participants", response_model=ManageParticipantsResponse)
async def manage_group_participants(
    payload: ManageParticipantsPayload, user_id: CurrentUserDep, service: GroupServiceDep
):
    return await service.manage_participants(user_id, payload.chat_id, payload.participant_id, payload.action)


@router.post("/members", response_model=AddMemberResponse)
async def add_user_to_group(payload: AddMemberPayload, user_id: CurrentUserDep, service: GroupServiceDep):
    return await service.add_participant(user_id, payload.group_id, payload.user_id)


@router.get("", response_model=GroupListResponse)
async def fetch_user_groups(user_id: CurrentUserDep, service: GroupServiceDep):
    return await service.fetch_user_groups(user_id)
