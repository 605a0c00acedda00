from typing import List

from pydantic import Field

from mentorhub.models.base import DocumentModel


class RelationshipRecord(DocumentModel):
    """Per-user connection state. Lists are treated as sets."""

    id: str
    friends: List[str] = Field(default_factory=list)
    pending: List[str] = Field(default_factory=list)  # incoming requests
    outgoing: List[str] = Field(default_factory=list)  # requests sent

    def is_friend(self, uid: str) -> bool:
        return uid in self.friends

    def has_incoming(self, uid: str) -> bool:
        return uid in self.pending
