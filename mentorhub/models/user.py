from typing import List, Optional

from pydantic import Field

from mentorhub.models.base import DocumentModel


class UserProfile(DocumentModel):
    """The slice of the users/{uid} profile this service reads or writes."""

    id: str
    name: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    fcm_token: Optional[str] = Field(default=None, alias="fcmToken")
    group: List[str] = Field(default_factory=list)


def profile_summary(profile: UserProfile, fallback_name: str = "User") -> dict:
    return {
        "id": profile.id,
        "name": profile.name or fallback_name,
        "avatarUrl": profile.avatar_url or None,
    }
