"""
Message change-feed listener

Watches every messages subcollection for new documents and hands each
creation to MessageIngestSubscriber. Snapshot callbacks arrive on the
Firestore client's own thread and are scheduled onto this process's event
loop. Only messages created after startup are watched; the webhook at
/events/message-created covers deployments that relay events instead.

    python -m mentorhub.workers.message_listener
"""

import argparse
import asyncio
import signal

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from mentorhub.core.config import settings
from mentorhub.core.logging import get_logger, setup_logging
from mentorhub.core.time import utcnow
from mentorhub.infra.providers import build_push_sender, build_store
from mentorhub.models.base import SUBCOLLECTION_MESSAGES
from mentorhub.services.message_ingest import MessageIngestSubscriber

logger = get_logger(__name__)


class MessageListener:
    def __init__(self, subscriber: MessageIngestSubscriber, loop: asyncio.AbstractEventLoop):
        self.subscriber = subscriber
        self.loop = loop
        self.watch = None

    def on_snapshot(self, snapshot, changes, read_time) -> None:
        for change in changes:
            if change.type.name != "ADDED":
                continue
            chat_id = change.document.reference.parent.parent.id
            message_id = change.document.id
            future = asyncio.run_coroutine_threadsafe(self._handle(chat_id, message_id), self.loop)
            future.add_done_callback(lambda f, c=chat_id, m=message_id: self._log_failure(f, c, m))

    async def _handle(self, chat_id: str, message_id: str) -> None:
        await self.subscriber.handle(chat_id, message_id)

    @staticmethod
    def _log_failure(future, chat_id: str, message_id: str) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("listener.ingest_failed", chat_id=chat_id, message_id=message_id, error=str(exc))

    def start(self, client: firestore.Client) -> None:
        query = client.collection_group(SUBCOLLECTION_MESSAGES).where(
            filter=FieldFilter("createdAt", ">=", utcnow())
        )
        self.watch = query.on_snapshot(self.on_snapshot)
        logger.info("listener.started", project_id=settings.firebase_project_id)

    def stop(self) -> None:
        if self.watch is not None:
            self.watch.unsubscribe()
            self.watch = None
        logger.info("listener.stopped")


def build_client() -> firestore.Client:
    credentials = None
    if settings.firebase_credentials_path:
        from google.oauth2 import service_account

        credentials = service_account.Credentials.from_service_account_file(
            settings.firebase_credentials_path
        )
    return firestore.Client(project=settings.firebase_project_id, credentials=credentials)


async def main() -> None:
    argparse.ArgumentParser(description="Dispatch notifications for newly created chat messages").parse_args()
    setup_logging()

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    store = build_store()
    listener = MessageListener(MessageIngestSubscriber.build(store, build_push_sender()), loop)
    listener.start(build_client())
    try:
        await stop_event.wait()
    finally:
        listener.stop()
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
