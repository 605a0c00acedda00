"""
Dependency Injection

FastAPI dependencies for routes. The store, push sender and cleanup queue
are built once in the application lifespan and read from app.state.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request

from mentorhub.core.token import CurrentUserDep, get_current_user_id
from mentorhub.infra.push import PushSender
from mentorhub.infra.queue import JobQueue
from mentorhub.infra.store import DocumentStore
from mentorhub.repositories.users import UserRepository
from mentorhub.services.chat import ChatDirectory
from mentorhub.services.connections import ConnectionService
from mentorhub.services.groups import GroupService
from mentorhub.services.message_ingest import MessageIngestSubscriber
from mentorhub.services.notifications import DeviceTokenService

__all__ = [
    "CurrentUserDep",
    "get_current_user_id",
    "StoreDep",
    "ConnectionServiceDep",
    "GroupServiceDep",
    "ChatDirectoryDep",
    "DeviceTokenServiceDep",
    "IngestSubscriberDep",
]


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_push_sender(request: Request) -> PushSender:
    return request.app.state.push_sender


def get_cleanup_queue(request: Request) -> Optional[JobQueue]:
    return getattr(request.app.state, "cleanup_queue", None)


StoreDep = Annotated[DocumentStore, Depends(get_store)]
PushSenderDep = Annotated[PushSender, Depends(get_push_sender)]
CleanupQueueDep = Annotated[Optional[JobQueue], Depends(get_cleanup_queue)]


def get_connection_service(store: StoreDep) -> ConnectionService:
    return ConnectionService(store)


def get_group_service(store: StoreDep, cleanup_queue: CleanupQueueDep) -> GroupService:
    return GroupService(store, cleanup_queue=cleanup_queue)


def get_chat_directory(store: StoreDep) -> ChatDirectory:
    return ChatDirectory(store)


def get_device_token_service(store: StoreDep) -> DeviceTokenService:
    return DeviceTokenService(UserRepository(store))


def get_ingest_subscriber(store: StoreDep, sender: PushSenderDep) -> MessageIngestSubscriber:
    return MessageIngestSubscriber.build(store, sender)


ConnectionServiceDep = Annotated[ConnectionService, Depends(get_connection_service)]
GroupServiceDep = Annotated[GroupService, Depends(get_group_service)]
ChatDirectoryDep = Annotated[ChatDirectory, Depends(get_chat_directory)]
DeviceTokenServiceDep = Annotated[DeviceTokenService, Depends(get_device_token_service)]
IngestSubscriberDep = Annotated[MessageIngestSubscriber, Depends(get_ingest_subscriber)]
