"""Message-created subscriber and notification fan-out."""

from datetime import datetime, timezone

import pytest

from mentorhub.infra.push import PushDeliveryError, TokenNotRegisteredError
from mentorhub.models.base import COLLECTION_CHANNELS, COLLECTION_USERS, messages_path
from mentorhub.models.channel import ChannelRecord


@pytest.fixture
async def direct_chat(chat, seed_user):
    await seed_user("alice", displayName="Alice A.", fcmToken="tok-alice")
    await seed_user("bob", name="Bob", fcmToken="tok-bob")
    await chat.initialize_chat("alice", "bob")
    return "alice_bob"


@pytest.fixture
async def group_chat(chat, seed_user):
    members = ["owner", "m1", "m2", "m3", "m4"]
    for uid in members:
        await seed_user(uid, name=uid.upper(), fcmToken=f"tok-{uid}")
    await chat.initialize_group_channel("g1", "Study", members)
    return "g1"


@pytest.mark.asyncio
async def test_direct_message_notifies_only_the_other_participant(ingest, push, seed_message, direct_chat):
    await seed_message(direct_chat, "m1", "alice", "hello bob")

    result = await ingest.handle(direct_chat, "m1")

    assert result.recipients == ["bob"]
    assert result.dispatched == ["bob"]
    assert len(push.sent) == 1
    message = push.sent[0]
    assert message.token == "tok-bob"
    assert message.title == "Alice A."
    assert message.body == "hello bob"
    assert message.data == {"type": "CHAT", "chatId": "alice_bob", "senderId": "alice"}


@pytest.mark.asyncio
async def test_group_message_notifies_everyone_but_sender(ingest, push, seed_message, group_chat):
    await seed_message(group_chat, "m1", "m2", "meeting at 5")

    result = await ingest.handle(group_chat, "m1")

    assert sorted(result.recipients) == ["m1", "m3", "m4", "owner"]
    assert len(push.sent) == 4
    assert {m.token for m in push.sent} == {"tok-owner", "tok-m1", "tok-m3", "tok-m4"}
    assert all(m.title == "[Group] Study" for m in push.sent)


@pytest.mark.asyncio
async def test_channel_metadata_tracks_latest_message(ingest, store, seed_message, direct_chat):
    await seed_message(direct_chat, "m1", "bob", "latest")

    await ingest.handle(direct_chat, "m1")

    channel = (await store.get(COLLECTION_CHANNELS, direct_chat)).data
    assert channel["lastMessage"]["text"] == "latest"
    assert channel["lastMessage"]["senderId"] == "bob"
    assert channel["lastActivity"] == channel["lastMessage"]["timestamp"]


@pytest.mark.asyncio
async def test_long_body_truncated_and_sender_fallback(ingest, push, chat, seed_user, seed_message):
    await seed_user("bob", fcmToken="tok-bob")
    await chat.initialize_chat("anon", "bob")
    text = "x" * 60

    await seed_message("anon_bob", "m1", "anon", text)
    await ingest.handle("anon_bob", "m1")

    message = push.sent[0]
    assert message.title == "A Friend"
    assert message.body == "x" * 47 + "..."
    assert len(message.body) == 50


@pytest.mark.asyncio
async def test_recipient_without_token_is_skipped(ingest, push, chat, seed_user, seed_message):
    await seed_user("alice", name="Alice")
    await seed_user("bob", name="Bob")
    await chat.initialize_chat("alice", "bob")
    await seed_message("alice_bob", "m1", "alice", "hi")

    result = await ingest.handle("alice_bob", "m1")

    assert result.skipped == ["bob"]
    assert push.sent == []


@pytest.mark.asyncio
async def test_dead_token_is_removed_without_raising(ingest, push, store, seed_message, direct_chat):
    push.failures["tok-bob"] = lambda: TokenNotRegisteredError("unregistered")
    await seed_message(direct_chat, "m1", "alice", "hi")

    result = await ingest.handle(direct_chat, "m1")

    assert result.dispatched == ["bob"]
    bob = (await store.get(COLLECTION_USERS, "bob")).data
    assert "fcmToken" not in bob
    assert bob["name"] == "Bob"


@pytest.mark.asyncio
async def test_one_failure_does_not_stop_other_recipients(ingest, push, store, seed_message, group_chat):
    push.failures["tok-m1"] = lambda: PushDeliveryError("quota exceeded")
    await seed_message(group_chat, "msg", "owner", "hello all")

    await ingest.handle(group_chat, "msg")

    assert {m.token for m in push.sent} == {"tok-m2", "tok-m3", "tok-m4"}
    # a transient failure keeps the token
    assert (await store.get(COLLECTION_USERS, "m1")).data["fcmToken"] == "tok-m1"


@pytest.mark.asyncio
async def test_redelivered_event_does_not_notify_twice(ingest, push, store, seed_message, direct_chat):
    await seed_message(direct_chat, "m1", "alice", "once")

    await ingest.handle(direct_chat, "m1")
    again = await ingest.handle(direct_chat, "m1")

    assert again.already_notified is True
    assert len(push.sent) == 1
    assert (await store.get(messages_path(direct_chat), "m1")).data["notifiedAt"] is not None


@pytest.mark.asyncio
async def test_missing_channel_or_message_is_dropped(ingest, push, store, seed_message):
    result = await ingest.handle("nobody_here", "m1")
    assert result.dropped is True

    await seed_message("nobody_here", "m1", "alice", "orphan")
    result = await ingest.handle("nobody_here", "m1")

    assert result.dropped is True
    assert push.sent == []
    assert store.dump(COLLECTION_CHANNELS) == {}


@pytest.mark.asyncio
async def test_late_redelivery_keeps_newer_last_message(ingest, push, store, seed, seed_user, seed_message):
    june = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)
    await seed_user("alice", name="Alice", fcmToken="tok-alice")
    await seed_user("bob", name="Bob", fcmToken="tok-bob")
    await seed(
        COLLECTION_CHANNELS,
        "alice_bob",
        {
            "participants": ["alice", "bob"],
            "type": "one_on_one",
            "lastMessage": {"text": "newer", "senderId": "bob", "timestamp": june},
            "lastActivity": june,
        },
    )
    await seed_message("alice_bob", "m1", "alice", "older")

    result = await ingest.handle("alice_bob", "m1")

    channel = (await store.get(COLLECTION_CHANNELS, "alice_bob")).data
    assert channel["lastMessage"]["text"] == "newer"
    assert channel["lastActivity"] == june
    assert result.dispatched == ["bob"]
    assert [m.body for m in push.sent] == ["older"]


@pytest.mark.parametrize(
    "stored, incoming, expected",
    [
        (datetime(2024, 6, 1, tzinfo=timezone.utc), datetime(2024, 5, 1, tzinfo=timezone.utc), True),
        (datetime(2024, 5, 1, tzinfo=timezone.utc), datetime(2024, 5, 1, tzinfo=timezone.utc), False),
        (datetime(2024, 6, 1), datetime(2024, 5, 1, tzinfo=timezone.utc), True),
        (None, datetime(2024, 5, 1, tzinfo=timezone.utc), False),
        (datetime(2024, 6, 1, tzinfo=timezone.utc), None, False),
    ],
)
def test_has_newer_message_than(stored, incoming, expected):
    channel = ChannelRecord.from_doc(
        "alice_bob",
        {"participants": ["alice", "bob"], "lastMessage": {"text": "x", "senderId": "bob", "timestamp": stored}},
    )
    assert channel.has_newer_message_than(incoming) is expected
