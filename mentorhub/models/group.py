from datetime import datetime
from typing import List, Optional

from pydantic import Field

from mentorhub.models.base import DocumentModel


class GroupRecord(DocumentModel):
    """Invariant: owner_id in admin_ids, admin_ids subset of members."""

    id: str
    name: str = ""
    owner_id: str = Field(default="", alias="ownerId")
    admin_ids: List[str] = Field(default_factory=list, alias="adminIds")
    members: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    def is_admin(self, uid: str) -> bool:
        return uid in self.admin_ids

    def is_member(self, uid: str) -> bool:
        return uid in self.members
