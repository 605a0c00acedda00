"""
Relationship records (friends/{uid}).

Reads return an empty record for users that never had a connection; writes
are merge-sets, so the document is created lazily by the first request.
Mutations are only staged on a batch so the calling service decides what
commits together.
"""

from mentorhub.infra.store import DocumentStore, SetRemove, SetUnion, WriteBatch
from mentorhub.models.base import COLLECTION_FRIENDS
from mentorhub.models.relationship import RelationshipRecord


class RelationshipRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, uid: str) -> RelationshipRecord:
        doc = await self.store.get(COLLECTION_FRIENDS, uid)
        if doc is None:
            return RelationshipRecord(id=uid)
        return RelationshipRecord.from_doc(doc.id, doc.data)

    def stage_request(self, batch: WriteBatch, sender_id: str, target_id: str) -> None:
        batch.set(COLLECTION_FRIENDS, sender_id, {"outgoing": SetUnion(target_id)}, merge=True)
        batch.set(COLLECTION_FRIENDS, target_id, {"pending": SetUnion(sender_id)}, merge=True)

    def stage_connect(self, batch: WriteBatch, uid_a: str, uid_b: str) -> None:
        """Make the pair mutual friends and clear request edges in both directions."""
        for uid, other in ((uid_a, uid_b), (uid_b, uid_a)):
            batch.set(
                COLLECTION_FRIENDS,
                uid,
                {
                    "friends": SetUnion(other),
                    "pending": SetRemove(other),
                    "outgoing": SetRemove(other),
                },
                merge=True,
            )

    def stage_decline(self, batch: WriteBatch, decliner_id: str, requester_id: str) -> None:
        batch.set(COLLECTION_FRIENDS, decliner_id, {"pending": SetRemove(requester_id)}, merge=True)
