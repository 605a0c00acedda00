from typing import Any, Dict, List, Optional

from mentorhub.infra.store import SERVER_TIMESTAMP, DocumentStore, SetRemove, SetUnion, WriteBatch
from mentorhub.models.base import COLLECTION_CHANNELS, messages_path
from mentorhub.models.channel import ChannelRecord, ChatMessage


class ChannelRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, channel_id: str) -> Optional[ChannelRecord]:
        doc = await self.store.get(COLLECTION_CHANNELS, channel_id)
        if doc is None:
            return None
        return ChannelRecord.from_doc(doc.id, doc.data)

    async def list_for_participant(self, uid: str) -> List[ChannelRecord]:
        docs = await self.store.query_contains(
            COLLECTION_CHANNELS, "participants", uid, order_by="lastActivity", descending=True
        )
        return [ChannelRecord.from_doc(doc.id, doc.data) for doc in docs]

    async def create(self, channel_id: str, data: Dict[str, Any]) -> bool:
        return await self.store.create(COLLECTION_CHANNELS, channel_id, data)

    def stage_merge(self, batch: WriteBatch, channel_id: str, data: Dict[str, Any]) -> None:
        batch.set(COLLECTION_CHANNELS, channel_id, data, merge=True)

    def stage_add_participant(self, batch: WriteBatch, channel_id: str, uid: str) -> None:
        batch.set(
            COLLECTION_CHANNELS,
            channel_id,
            {"participants": SetUnion(uid), "lastActivity": SERVER_TIMESTAMP},
            merge=True,
        )

    def stage_remove_participant(self, batch: WriteBatch, channel_id: str, uid: str) -> None:
        batch.set(
            COLLECTION_CHANNELS,
            channel_id,
            {"participants": SetRemove(uid), "lastActivity": SERVER_TIMESTAMP},
            merge=True,
        )

    async def get_message(self, channel_id: str, message_id: str) -> Optional[ChatMessage]:
        doc = await self.store.get(messages_path(channel_id), message_id)
        if doc is None:
            return None
        return ChatMessage.from_doc(doc.id, doc.data)

    async def update_last_message(self, channel_id: str, message: ChatMessage) -> None:
        timestamp = message.created_at or SERVER_TIMESTAMP
        batch = self.store.batch()
        batch.update(
            COLLECTION_CHANNELS,
            channel_id,
            {
                "lastMessage": {
                    "text": message.text,
                    "senderId": message.sender_id,
                    "timestamp": timestamp,
                },
                "lastActivity": timestamp,
            },
        )
        await batch.commit()

    async def mark_notified(self, channel_id: str, message_id: str) -> None:
        batch = self.store.batch()
        batch.update(messages_path(channel_id), message_id, {"notifiedAt": SERVER_TIMESTAMP})
        await batch.commit()
