"""Shared fixtures: in-memory store, mock push sender, services and an ASGI client."""

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from mentorhub.core.config import settings
from mentorhub.infra.memory_store import MemoryDocumentStore
from mentorhub.infra.push import MockPushSender
from mentorhub.main import create_app
from mentorhub.models.base import COLLECTION_USERS, messages_path
from mentorhub.repositories.users import UserRepository
from mentorhub.services.chat import ChatDirectory
from mentorhub.services.connections import ConnectionService
from mentorhub.services.groups import GroupService
from mentorhub.services.message_ingest import MessageIngestSubscriber


class FakeJob:
    def __init__(self, job_id):
        self.id = job_id


class FakeQueue:
    """Records enqueue calls in place of an RQ-backed JobQueue."""

    def __init__(self):
        self.jobs = []

    def enqueue(self, func, args=None, kwargs=None, **options):
        self.jobs.append((func, args, kwargs))
        return FakeJob(f"job-{len(self.jobs)}")


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def push():
    return MockPushSender()


@pytest.fixture
def users(store):
    return UserRepository(store)


@pytest.fixture
def connections(store):
    return ConnectionService(store)


@pytest.fixture
def chat(store):
    return ChatDirectory(store)


@pytest.fixture
def cleanup_queue():
    return FakeQueue()


@pytest.fixture
def groups(store):
    return GroupService(store)


@pytest.fixture
def ingest(store, push):
    return MessageIngestSubscriber.build(store, push)


@pytest.fixture
def seed(store):
    """Write a document directly, bypassing the services."""

    async def _seed(collection, doc_id, data):
        batch = store.batch()
        batch.set(collection, doc_id, data)
        await batch.commit()

    return _seed


@pytest.fixture
def seed_user(seed):
    async def _seed_user(uid, **fields):
        await seed(COLLECTION_USERS, uid, fields)

    return _seed_user


@pytest.fixture
def seed_message(seed):
    async def _seed_message(chat_id, message_id, sender_id, text, **fields):
        data = {
            "senderId": sender_id,
            "text": text,
            "createdAt": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        }
        data.update(fields)
        await seed(messages_path(chat_id), message_id, data)

    return _seed_message


def make_token(uid: str) -> str:
    return jwt.encode({"sub": uid}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth():
    def _auth(uid: str) -> dict:
        return {"Authorization": f"Bearer {make_token(uid)}"}

    return _auth


@pytest.fixture
def app(store, push):
    application = create_app()
    # ASGITransport does not run the lifespan, so wire app.state directly
    application.state.store = store
    application.state.push_sender = push
    application.state.cleanup_queue = None
    return application


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
