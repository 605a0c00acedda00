"""Chat channel directory."""

from datetime import datetime, timezone

import pytest

from mentorhub.core.errors import AuthenticationError, InvalidArgumentError
from mentorhub.models.base import COLLECTION_CHANNELS
from mentorhub.services.chat import channel_id


@pytest.mark.parametrize("a, b", [("alice", "bob"), ("zed", "amy"), ("u1", "u10")])
def test_channel_id_is_commutative(a, b):
    assert channel_id(a, b) == channel_id(b, a)


@pytest.mark.asyncio
async def test_initialize_from_either_side_hits_same_channel(chat, store):
    first = await chat.initialize_chat("alice", "bob")
    second = await chat.initialize_chat("bob", "alice")

    assert first["chatId"] == second["chatId"] == "alice_bob"
    assert first["success"] is True
    channels = store.dump(COLLECTION_CHANNELS)
    assert list(channels) == ["alice_bob"]
    assert channels["alice_bob"]["participants"] == ["alice", "bob"]
    assert channels["alice_bob"]["type"] == "one_on_one"


@pytest.mark.asyncio
async def test_reinitialize_keeps_last_message(chat, store, seed):
    sent_at = datetime(2024, 5, 1, tzinfo=timezone.utc)
    await seed(
        COLLECTION_CHANNELS,
        "alice_bob",
        {
            "participants": ["alice", "bob"],
            "type": "one_on_one",
            "lastMessage": {"text": "hi", "senderId": "alice", "timestamp": sent_at},
            "lastActivity": sent_at,
        },
    )

    await chat.initialize_chat("bob", "alice")

    channel = (await store.get(COLLECTION_CHANNELS, "alice_bob")).data
    assert channel["lastMessage"]["text"] == "hi"
    assert channel["lastActivity"] == sent_at


@pytest.mark.asyncio
async def test_initialize_rejects_self_and_missing_target(chat, store):
    with pytest.raises(InvalidArgumentError):
        await chat.initialize_chat("alice", "alice")
    with pytest.raises(InvalidArgumentError):
        await chat.initialize_chat("alice", None)
    with pytest.raises(AuthenticationError):
        await chat.initialize_chat(None, "bob")
    assert store.dump(COLLECTION_CHANNELS) == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("caller, target", [("a_b", "c"), ("a", "b_c")])
async def test_initialize_rejects_ids_containing_separator(chat, store, caller, target):
    with pytest.raises(InvalidArgumentError):
        await chat.initialize_chat(caller, target)
    assert store.dump(COLLECTION_CHANNELS) == {}


@pytest.mark.asyncio
async def test_group_channel_without_batch_is_idempotent(chat, store):
    await chat.initialize_group_channel("g1", "Study", ["alice", "bob"])
    await chat.initialize_group_channel("g1", "Study Hall", ["alice", "bob", "carol"])

    channel = (await store.get(COLLECTION_CHANNELS, "g1")).data
    assert channel["type"] == "group"
    assert channel["name"] == "Study Hall"
    assert channel["participants"] == ["alice", "bob", "carol"]


@pytest.mark.asyncio
async def test_conversations_newest_first_with_fallbacks(chat, seed):
    await seed(
        COLLECTION_CHANNELS,
        "alice_bob",
        {
            "participants": ["alice", "bob"],
            "type": "one_on_one",
            "lastMessage": {"text": None, "senderId": None, "timestamp": None},
            "lastActivity": datetime(2024, 1, 1, tzinfo=timezone.utc),
        },
    )
    await seed(
        COLLECTION_CHANNELS,
        "g1",
        {
            "participants": ["alice", "carol"],
            "type": "group",
            "name": "Study",
            "lastMessage": {"text": "see you", "senderId": "carol", "timestamp": None},
            "lastActivity": datetime(2024, 3, 1, tzinfo=timezone.utc),
        },
    )

    result = await chat.fetch_user_conversations("alice")

    assert result["success"] is True
    assert result["conversations"] == [
        {
            "chatId": "g1",
            "type": "group",
            "name": "Study",
            "otherUserId": None,
            "lastMessage": "see you",
            "lastTimestamp": "2024-03-01T00:00:00+00:00",
        },
        {
            "chatId": "alice_bob",
            "type": "one_on_one",
            "name": None,
            "otherUserId": "bob",
            "lastMessage": "Start a conversation!",
            "lastTimestamp": "2024-01-01T00:00:00+00:00",
        },
    ]
