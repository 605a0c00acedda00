"""Collection names and the shared base for stored document shapes."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

COLLECTION_USERS = "users"
COLLECTION_FRIENDS = "friends"
COLLECTION_GROUPS = "groups"
COLLECTION_CHANNELS = "messaging"
SUBCOLLECTION_MESSAGES = "messages"


def messages_path(channel_id: str) -> str:
    return f"{COLLECTION_CHANNELS}/{channel_id}/{SUBCOLLECTION_MESSAGES}"


class DocumentModel(BaseModel):
    """Base class for stored documents; unknown fields are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]):
        return cls.model_validate({"id": doc_id, **(data or {})})
