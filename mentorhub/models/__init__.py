from mentorhub.models.channel import ChannelRecord, ChannelType, ChatMessage, LastMessage
from mentorhub.models.group import GroupRecord
from mentorhub.models.relationship import RelationshipRecord
from mentorhub.models.user import UserProfile

__all__ = [
    "RelationshipRecord",
    "GroupRecord",
    "ChannelRecord",
    "ChannelType",
    "ChatMessage",
    "LastMessage",
    "UserProfile",
]
