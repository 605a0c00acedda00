"""
Message-created subscriber

Runs once per creation event from the change feed (webhook or listener
worker). Delivery is at-least-once: notifiedAt on the message keeps a
redelivered event from pushing the same notification twice, and the
channel's lastMessage is only written when it does not already hold a
newer message, so a late redelivery cannot roll it back. That check reads
before it writes; two deliveries racing for the same channel can still
interleave.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List

from mentorhub.core.logging import LatencyLogger, get_logger, log_context
from mentorhub.infra.push import PushSender
from mentorhub.infra.store import DocumentStore
from mentorhub.models.channel import ChannelType
from mentorhub.repositories.channels import ChannelRepository
from mentorhub.repositories.users import UserRepository
from mentorhub.services.notifications import ChatNotification, NotificationDispatcher

logger = get_logger(__name__)

DEFAULT_SENDER_NAME = "A Friend"
DEFAULT_GROUP_NAME = "Group Chat"


@dataclass
class IngestResult:
    chat_id: str
    message_id: str
    recipients: List[str] = field(default_factory=list)
    dispatched: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    dropped: bool = False
    already_notified: bool = False


class MessageIngestSubscriber:
    def __init__(self, store: DocumentStore, dispatcher: NotificationDispatcher, users: UserRepository):
        self.channels = ChannelRepository(store)
        self.dispatcher = dispatcher
        self.users = users

    @classmethod
    def build(cls, store: DocumentStore, sender: PushSender) -> "MessageIngestSubscriber":
        users = UserRepository(store)
        return cls(store, NotificationDispatcher(sender, users), users)

    async def handle(self, chat_id: str, message_id: str) -> IngestResult:
        result = IngestResult(chat_id=chat_id, message_id=message_id)

        with log_context(chat_id=chat_id, message_id=message_id), LatencyLogger(
            "ingest.message", logger, chat_id=chat_id, message_id=message_id
        ):
            message = await self.channels.get_message(chat_id, message_id)
            if message is None:
                logger.warning("ingest.message_missing", chat_id=chat_id, message_id=message_id)
                result.dropped = True
                return result

            channel = await self.channels.get(chat_id)
            if channel is None:
                logger.warning("ingest.channel_missing", chat_id=chat_id, message_id=message_id)
                result.dropped = True
                return result

            result.recipients = channel.recipients_for(message.sender_id)
            if channel.has_newer_message_than(message.created_at):
                logger.info("ingest.metadata_stale", chat_id=chat_id, message_id=message_id)
            else:
                await self.channels.update_last_message(chat_id, message)

            if not result.recipients:
                logger.info("ingest.no_recipients", chat_id=chat_id, message_id=message_id)
                return result
            if message.notified_at is not None:
                logger.info("ingest.already_notified", chat_id=chat_id, message_id=message_id)
                result.already_notified = True
                return result

            sender_name = await self.users.display_name(message.sender_id, fallback=DEFAULT_SENDER_NAME)
            if channel.type == ChannelType.GROUP:
                title = f"[Group] {channel.name or DEFAULT_GROUP_NAME}"
            else:
                title = sender_name
            notification = ChatNotification.for_message(title, message.text, chat_id, message.sender_id)

            profiles = {p.id: p for p in await self.users.get_profiles(result.recipients)}
            deliveries = []
            for recipient in result.recipients:
                profile = profiles.get(recipient)
                token = profile.fcm_token if profile else None
                if not token:
                    logger.info("ingest.recipient_skipped", chat_id=chat_id, recipient=recipient)
                    result.skipped.append(recipient)
                    continue
                result.dispatched.append(recipient)
                deliveries.append(self.dispatcher.dispatch(recipient, token, notification))

            await asyncio.gather(*deliveries)
            await self.channels.mark_notified(chat_id, message_id)

        logger.info(
            "ingest.message.ok",
            chat_id=chat_id,
            message_id=message_id,
            recipients=len(result.recipients),
            dispatched=len(result.dispatched),
            skipped=len(result.skipped),
        )
        return result
