"""
Backend selection

Builds the document store and push sender named in settings. Called by the
API lifespan and by the standalone workers.
"""

from mentorhub.core.config import settings
from mentorhub.core.logging import get_logger
from mentorhub.infra.push import FcmPushSender, MockPushSender, PushSender
from mentorhub.infra.store import DocumentStore

logger = get_logger(__name__)


def build_store() -> DocumentStore:
    if settings.store_provider == "FIRESTORE":
        from mentorhub.infra.firestore_store import FirestoreDocumentStore

        return FirestoreDocumentStore.from_settings(
            settings.firebase_project_id, settings.firebase_credentials_path
        )
    from mentorhub.infra.memory_store import MemoryDocumentStore

    logger.warning("store.memory.enabled")
    return MemoryDocumentStore()


def build_push_sender() -> PushSender:
    if settings.use_mock_push:
        return MockPushSender()
    return FcmPushSender.from_settings(
        settings.firebase_project_id, settings.firebase_credentials_path
    )
