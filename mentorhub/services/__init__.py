from mentorhub.services.chat import ChatDirectory, channel_id
from mentorhub.services.connections import ConnectionService
from mentorhub.services.groups import GroupService
from mentorhub.services.message_ingest import IngestResult, MessageIngestSubscriber
from mentorhub.services.notifications import DeviceTokenService, NotificationDispatcher

__all__ = [
    "ChatDirectory",
    "channel_id",
    "ConnectionService",
    "GroupService",
    "IngestResult",
    "MessageIngestSubscriber",
    "DeviceTokenService",
    "NotificationDispatcher",
]
