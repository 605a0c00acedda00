"""Notification payloads, dead-token cleanup and device token registration."""

import pytest

from mentorhub.core.errors import AuthenticationError, InvalidArgumentError
from mentorhub.infra.push import TokenNotRegisteredError
from mentorhub.models.base import COLLECTION_USERS
from mentorhub.services.notifications import (
    ChatNotification,
    DeviceTokenService,
    NotificationDispatcher,
    truncate_body,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", ""),
        (None, ""),
        ("short", "short"),
        ("y" * 50, "y" * 50),
        ("z" * 51, "z" * 47 + "..."),
    ],
)
def test_truncate_body(text, expected):
    assert truncate_body(text) == expected


def test_notification_data_payload():
    note = ChatNotification.for_message("Bob", "hey", "alice_bob", "bob")
    assert note.data() == {"type": "CHAT", "chatId": "alice_bob", "senderId": "bob"}


class FailingUsers:
    async def clear_device_token(self, uid):
        raise RuntimeError("store unavailable")


@pytest.mark.asyncio
async def test_token_cleanup_failure_is_swallowed(push):
    push.failures["dead"] = lambda: TokenNotRegisteredError("gone")
    dispatcher = NotificationDispatcher(push, FailingUsers())
    note = ChatNotification.for_message("Bob", "hey", "alice_bob", "bob")

    assert await dispatcher.dispatch("alice", "dead", note) is False


@pytest.mark.asyncio
async def test_unexpected_sender_error_is_swallowed(push, users):
    push.failures["tok"] = lambda: ValueError("boom")
    dispatcher = NotificationDispatcher(push, users)
    note = ChatNotification.for_message("Bob", "hey", "alice_bob", "bob")

    assert await dispatcher.dispatch("alice", "tok", note) is False


@pytest.mark.asyncio
async def test_save_device_token(users, store, seed_user):
    await seed_user("alice", name="Alice")
    service = DeviceTokenService(users)

    assert await service.save("alice", "fcm-123") == {"success": True}

    profile = (await store.get(COLLECTION_USERS, "alice")).data
    assert profile["fcmToken"] == "fcm-123"
    assert profile["name"] == "Alice"
    assert profile["lastTokenUpdate"] is not None


@pytest.mark.asyncio
async def test_save_device_token_validation(users):
    service = DeviceTokenService(users)
    with pytest.raises(AuthenticationError):
        await service.save(None, "fcm-123")
    with pytest.raises(InvalidArgumentError):
        await service.save("alice", "")
