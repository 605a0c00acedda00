from typing import List, Optional

from fastapi import APIRouter
from pydantic import Field

from mentorhub.api.schemas import CamelModel
from mentorhub.core.deps import ChatDirectoryDep, CurrentUserDep

router = APIRouter(prefix="/chat", tags=["chat"])

# --- Schemas ---

class InitializeChatPayload(CamelModel):
    target_uid: str = Field(min_length=1)

class InitializeChatResponse(CamelModel):
    success: bool
    chat_id: str
    message: str

class Conversation(CamelModel):
    chat_id: str
    type: str
    name: Optional[str] = None
    other_user_id: Optional[str] = None
    last_message: str
    last_timestamp: Optional[str] = None

class ConversationListResponse(CamelModel):
    success: bool
    conversations: List[Conversation]

# --- Endpoints ---

@router.post("/initialize", response_model=InitializeChatResponse)
async def initialize_chat(payload: InitializeChatPayload, user_id: CurrentUserDep, directory: ChatDirectoryDep):
    return await directory.initialize_chat(user_id, payload.target_uid)


@router.get("/conversations", response_model=ConversationListResponse)
async def fetch_user_conversations(user_id: CurrentUserDep, directory: ChatDirectoryDep):
    return await directory.fetch_user_conversations(user_id)
