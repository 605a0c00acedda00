from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field

from mentorhub.core.time import as_utc
from mentorhub.models.base import DocumentModel


class ChannelType(str, Enum):
    ONE_ON_ONE = "one_on_one"
    GROUP = "group"


class LastMessage(DocumentModel):
    text: Optional[str] = None
    sender_id: Optional[str] = Field(default=None, alias="senderId")
    timestamp: Optional[Any] = None


class ChannelRecord(DocumentModel):
    id: str
    participants: List[str] = Field(default_factory=list)
    type: ChannelType = ChannelType.ONE_ON_ONE
    name: Optional[str] = None
    last_message: Optional[LastMessage] = Field(default=None, alias="lastMessage")
    last_activity: Optional[datetime] = Field(default=None, alias="lastActivity")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    def recipients_for(self, sender_id: str) -> List[str]:
        if self.type == ChannelType.ONE_ON_ONE:
            other = next((uid for uid in self.participants if uid != sender_id), None)
            return [other] if other else []
        return [uid for uid in dict.fromkeys(self.participants) if uid != sender_id]

    def has_newer_message_than(self, created_at: Optional[datetime]) -> bool:
        """True when lastMessage already records a message created after created_at."""
        if self.last_message is None:
            return False
        stored = as_utc(self.last_message.timestamp)
        incoming = as_utc(created_at)
        if stored is None or incoming is None:
            return False
        return stored > incoming


class ChatMessage(DocumentModel):
    """Append-only message under messaging/{channelId}/messages."""

    id: str
    sender_id: str = Field(alias="senderId")
    text: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    notified_at: Optional[datetime] = Field(default=None, alias="notifiedAt")
