"""
Chat channel directory

One-on-one channels are keyed by the sorted pair of participant ids joined
with "_", so either side opening the chat lands on the same document. Ids
containing the separator are refused, since ("a_b", "c") and ("a", "b_c")
would otherwise share a channel. Group channels share the id of their
group, which the store generates without "_".
"""

from typing import List, Optional

from mentorhub.core.errors import InvalidArgumentError, internal_errors, require_caller, require_id
from mentorhub.core.logging import get_logger
from mentorhub.core.time import to_iso
from mentorhub.infra.store import SERVER_TIMESTAMP, DocumentStore, WriteBatch
from mentorhub.models.base import COLLECTION_CHANNELS
from mentorhub.models.channel import ChannelType
from mentorhub.repositories.channels import ChannelRepository

logger = get_logger(__name__)

EMPTY_CONVERSATION = "Start a conversation!"

PAIR_SEPARATOR = "_"


def channel_id(uid_a: str, uid_b: str) -> str:
    return PAIR_SEPARATOR.join(sorted([uid_a, uid_b]))


def _new_channel(participants: List[str], channel_type: ChannelType, name: Optional[str] = None) -> dict:
    data = {
        "participants": participants,
        "type": channel_type.value,
        "createdAt": SERVER_TIMESTAMP,
        "lastActivity": SERVER_TIMESTAMP,
        "lastMessage": {"text": None, "senderId": None, "timestamp": None},
    }
    if name is not None:
        data["name"] = name
    return data


class ChatDirectory:
    def __init__(self, store: DocumentStore):
        self.store = store
        self.channels = ChannelRepository(store)

    async def _create_or_merge(self, chat_id: str, data: dict, merge_fields: tuple) -> bool:
        # The placeholder lastMessage is only written on first creation
        if await self.channels.create(chat_id, data):
            return True
        batch = self.store.batch()
        self.channels.stage_merge(batch, chat_id, {key: data[key] for key in merge_fields})
        await batch.commit()
        return False

    async def initialize_chat(self, caller_id: Optional[str], target_uid) -> dict:
        uid = require_caller(caller_id)
        target = require_id(target_uid, "Target user ID is required.")
        if target == uid:
            raise InvalidArgumentError("You cannot start a chat with yourself.")
        if PAIR_SEPARATOR in uid or PAIR_SEPARATOR in target:
            raise InvalidArgumentError(f"User IDs cannot contain '{PAIR_SEPARATOR}'.")

        chat_id = channel_id(uid, target)
        with internal_errors("chat.initialize", "Failed to initialize chat.", uid=uid, chat_id=chat_id):
            created = await self._create_or_merge(
                chat_id,
                _new_channel(sorted([uid, target]), ChannelType.ONE_ON_ONE),
                ("participants", "type"),
            )

        logger.info("chat.initialize.ok", uid=uid, chat_id=chat_id, created=created)
        return {"success": True, "chatId": chat_id, "message": "Chat initialized successfully."}

    async def initialize_group_channel(
        self,
        group_id: str,
        name: str,
        members: List[str],
        batch: Optional[WriteBatch] = None,
    ) -> str:
        """Create the group's channel, staged into batch when one is given."""
        data = _new_channel(list(members), ChannelType.GROUP, name)
        if batch is not None:
            batch.set(COLLECTION_CHANNELS, group_id, data)
        else:
            await self._create_or_merge(group_id, data, ("participants", "type", "name"))
        return group_id

    async def fetch_user_conversations(self, caller_id: Optional[str]) -> dict:
        uid = require_caller(caller_id)

        with internal_errors("chat.fetch_conversations", "Failed to retrieve conversation list.", uid=uid):
            channels = await self.channels.list_for_participant(uid)

        conversations = []
        for channel in channels:
            is_group = channel.type == ChannelType.GROUP
            last = channel.last_message
            conversations.append(
                {
                    "chatId": channel.id,
                    "type": channel.type.value,
                    "name": (channel.name or "Group Chat") if is_group else None,
                    "otherUserId": None if is_group else next(
                        (p for p in channel.participants if p != uid), None
                    ),
                    "lastMessage": (last.text if last else None) or EMPTY_CONVERSATION,
                    "lastTimestamp": to_iso(channel.last_activity or channel.created_at),
                }
            )

        logger.info("chat.fetch_conversations.ok", uid=uid, count=len(conversations))
        return {"success": True, "conversations": conversations}
