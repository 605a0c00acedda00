"""Change-feed listener: snapshot callbacks from the client thread reach the ingest subscriber."""

import asyncio
from types import SimpleNamespace

import pytest
from structlog.testing import capture_logs

from mentorhub.workers.message_listener import MessageListener


class RecordingSubscriber:
    def __init__(self, expected: int, error: Exception = None):
        self.calls = []
        self.expected = expected
        self.error = error
        self.done = asyncio.Event()

    async def handle(self, chat_id, message_id):
        self.calls.append((chat_id, message_id))
        if len(self.calls) >= self.expected:
            self.done.set()
        if self.error is not None:
            raise self.error


def change(kind, chat_id, message_id):
    chat_ref = SimpleNamespace(id=chat_id)
    messages_ref = SimpleNamespace(id="messages", parent=chat_ref)
    return SimpleNamespace(
        type=SimpleNamespace(name=kind),
        document=SimpleNamespace(id=message_id, reference=SimpleNamespace(id=message_id, parent=messages_ref)),
    )


async def wait_until(predicate, timeout=1.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_only_added_documents_are_handled():
    subscriber = RecordingSubscriber(expected=2)
    listener = MessageListener(subscriber, asyncio.get_running_loop())
    changes = [
        change("ADDED", "alice_bob", "m1"),
        change("MODIFIED", "alice_bob", "m1"),
        change("REMOVED", "g1", "m0"),
        change("ADDED", "g1", "m7"),
    ]

    # snapshot callbacks arrive on the client's worker thread
    await asyncio.to_thread(listener.on_snapshot, None, changes, None)
    await asyncio.wait_for(subscriber.done.wait(), timeout=1.0)

    assert sorted(subscriber.calls) == [("alice_bob", "m1"), ("g1", "m7")]


@pytest.mark.asyncio
async def test_handler_failure_is_logged_not_raised():
    subscriber = RecordingSubscriber(expected=1, error=RuntimeError("store unavailable"))
    listener = MessageListener(subscriber, asyncio.get_running_loop())

    with capture_logs() as logs:
        await asyncio.to_thread(listener.on_snapshot, None, [change("ADDED", "alice_bob", "m1")], None)
        await asyncio.wait_for(subscriber.done.wait(), timeout=1.0)
        await wait_until(lambda: any(e["event"] == "listener.ingest_failed" for e in logs))

    [failure] = [e for e in logs if e["event"] == "listener.ingest_failed"]
    assert failure["chat_id"] == "alice_bob"
    assert failure["message_id"] == "m1"
    assert failure["error"] == "store unavailable"
