from typing import Iterable, List, Optional

from mentorhub.core.config import settings
from mentorhub.infra.batch_writer import chunked
from mentorhub.infra.store import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    DocumentStore,
    SetRemove,
    SetUnion,
    WriteBatch,
    unique_ids,
)
from mentorhub.models.base import COLLECTION_USERS
from mentorhub.models.user import UserProfile, profile_summary


class UserRepository:
    """Profile fields owned by this service: group refs and the device token."""

    def __init__(self, store: DocumentStore, page_size: Optional[int] = None):
        self.store = store
        self.page_size = page_size or settings.profile_lookup_page_size

    async def get(self, uid: str) -> Optional[UserProfile]:
        doc = await self.store.get(COLLECTION_USERS, uid)
        if doc is None:
            return None
        return UserProfile.from_doc(doc.id, doc.data)

    async def get_profiles(self, uids: Iterable[str]) -> List[UserProfile]:
        """Existing profiles for uids, in order, looked up page by page."""
        profiles = []
        for page in chunked(unique_ids(uids), self.page_size):
            docs = await self.store.get_many(COLLECTION_USERS, page)
            profiles.extend(UserProfile.from_doc(doc.id, doc.data) for doc in docs)
        return profiles

    async def summaries(self, uids: Iterable[str], fallback_name: str = "User") -> List[dict]:
        return [profile_summary(p, fallback_name) for p in await self.get_profiles(uids)]

    async def display_name(self, uid: str, fallback: str = "A Friend") -> str:
        profile = await self.get(uid)
        if profile is None:
            return fallback
        return profile.display_name or profile.name or fallback

    async def device_token(self, uid: str) -> Optional[str]:
        profile = await self.get(uid)
        return profile.fcm_token if profile else None

    def stage_group_ref_add(self, batch: WriteBatch, uid: str, group_id: str) -> None:
        batch.set(COLLECTION_USERS, uid, {"group": SetUnion(group_id)}, merge=True)

    def stage_group_ref_remove(self, batch: WriteBatch, uid: str, group_id: str) -> None:
        batch.set(COLLECTION_USERS, uid, {"group": SetRemove(group_id)}, merge=True)

    async def save_device_token(self, uid: str, token: str) -> None:
        batch = self.store.batch()
        batch.set(
            COLLECTION_USERS,
            uid,
            {"fcmToken": token, "lastTokenUpdate": SERVER_TIMESTAMP},
            merge=True,
        )
        await batch.commit()

    async def clear_device_token(self, uid: str) -> None:
        batch = self.store.batch()
        batch.set(COLLECTION_USERS, uid, {"fcmToken": DELETE_FIELD}, merge=True)
        await batch.commit()
