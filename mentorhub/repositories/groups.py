from typing import List, Optional

from mentorhub.infra.store import SERVER_TIMESTAMP, DocumentStore, SetRemove, SetUnion, WriteBatch
from mentorhub.models.base import COLLECTION_GROUPS
from mentorhub.models.group import GroupRecord


class GroupRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def new_id(self) -> str:
        return self.store.new_id(COLLECTION_GROUPS)

    async def get(self, group_id: str) -> Optional[GroupRecord]:
        doc = await self.store.get(COLLECTION_GROUPS, group_id)
        if doc is None:
            return None
        return GroupRecord.from_doc(doc.id, doc.data)

    async def list_for_member(self, uid: str) -> List[GroupRecord]:
        docs = await self.store.query_contains(COLLECTION_GROUPS, "members", uid)
        return [GroupRecord.from_doc(doc.id, doc.data) for doc in docs]

    def stage_create(self, batch: WriteBatch, group_id: str, name: str, owner_id: str, members: List[str]) -> None:
        batch.set(
            COLLECTION_GROUPS,
            group_id,
            {
                "id": group_id,
                "name": name,
                "ownerId": owner_id,
                "adminIds": [owner_id],
                "members": members,
                "createdAt": SERVER_TIMESTAMP,
            },
        )

    def stage_add_member(self, batch: WriteBatch, group_id: str, uid: str) -> None:
        batch.update(COLLECTION_GROUPS, group_id, {"members": SetUnion(uid)})

    def stage_remove_member(self, batch: WriteBatch, group_id: str, uid: str) -> None:
        # Eviction also drops admin rights so adminIds stays a subset of members
        batch.update(
            COLLECTION_GROUPS,
            group_id,
            {"members": SetRemove(uid), "adminIds": SetRemove(uid)},
        )

    async def delete(self, group_id: str) -> None:
        batch = self.store.batch()
        batch.delete(COLLECTION_GROUPS, group_id)
        await batch.commit()
