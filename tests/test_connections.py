"""Connection request state machine."""

import pytest

from mentorhub.core.errors import (
    AlreadyExistsError,
    AuthenticationError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from mentorhub.repositories.relationships import RelationshipRepository


@pytest.fixture
def relationships(store):
    return RelationshipRepository(store)


@pytest.mark.asyncio
async def test_send_records_both_directions(connections, relationships):
    assert await connections.send("alice", "bob") == {"success": True}

    alice = await relationships.get("alice")
    bob = await relationships.get("bob")
    assert alice.outgoing == ["bob"]
    assert bob.pending == ["alice"]
    assert alice.friends == [] and bob.friends == []


@pytest.mark.asyncio
async def test_resend_does_not_duplicate(connections, relationships):
    await connections.send("alice", "bob")
    await connections.send("alice", "bob")

    assert (await relationships.get("alice")).outgoing == ["bob"]
    assert (await relationships.get("bob")).pending == ["alice"]


@pytest.mark.asyncio
async def test_accept_makes_mutual_friends(connections, relationships):
    await connections.send("alice", "bob")
    assert await connections.accept("bob", "alice") == {"success": True}

    alice = await relationships.get("alice")
    bob = await relationships.get("bob")
    assert bob.friends == ["alice"]
    assert alice.friends == ["bob"]
    assert bob.pending == []
    assert alice.outgoing == []


@pytest.mark.asyncio
async def test_decline_clears_pending_without_friendship(connections, relationships):
    await connections.send("alice", "bob")
    assert await connections.decline("bob", "alice") == {"success": True}

    alice = await relationships.get("alice")
    bob = await relationships.get("bob")
    assert bob.pending == []
    assert bob.friends == [] and alice.friends == []


@pytest.mark.asyncio
async def test_send_to_existing_friend_is_rejected(connections):
    await connections.send("alice", "bob")
    await connections.accept("bob", "alice")

    with pytest.raises(AlreadyExistsError):
        await connections.send("alice", "bob")
    with pytest.raises(AlreadyExistsError):
        await connections.send("bob", "alice")


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [None, "", "   ", 42, "alice"])
async def test_send_rejects_bad_target_before_writing(connections, store, target):
    with pytest.raises(InvalidArgumentError):
        await connections.send("alice", target)
    assert store.commit_count == 0


@pytest.mark.asyncio
async def test_unauthenticated_caller(connections, store):
    with pytest.raises(AuthenticationError):
        await connections.send(None, "bob")
    with pytest.raises(AuthenticationError):
        await connections.fetch_incoming("")
    assert store.commit_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["accept", "decline"])
async def test_accept_or_decline_without_request_is_not_found(connections, store, operation):
    with pytest.raises(NotFoundError):
        await getattr(connections, operation)("bob", "alice")
    assert store.commit_count == 0


@pytest.mark.asyncio
async def test_crossed_request_becomes_connection(connections, relationships):
    await connections.send("alice", "bob")
    result = await connections.send("bob", "alice")

    assert result == {"success": True, "connected": True}
    alice = await relationships.get("alice")
    bob = await relationships.get("bob")
    assert alice.friends == ["bob"] and bob.friends == ["alice"]
    assert alice.outgoing == [] and alice.pending == []
    assert bob.outgoing == [] and bob.pending == []


@pytest.mark.asyncio
async def test_accept_reconciles_two_pending_edges(connections, relationships, store):
    # Both sends read before either wrote: each side holds the other as pending
    batch = store.batch()
    relationships.stage_request(batch, "alice", "bob")
    relationships.stage_request(batch, "bob", "alice")
    await batch.commit()

    await connections.accept("bob", "alice")

    for uid, other in (("alice", "bob"), ("bob", "alice")):
        record = await relationships.get(uid)
        assert record.friends == [other]
        assert record.pending == [] and record.outgoing == []


@pytest.mark.asyncio
async def test_fetch_requests_hydrates_profiles(connections, seed_user):
    await seed_user("bob", name="Bob", avatarUrl="https://img/bob.png")
    await seed_user("carol")
    await connections.send("bob", "alice")
    await connections.send("carol", "alice")
    await connections.send("ghost", "alice")
    await connections.send("alice", "dave")

    incoming = await connections.fetch_incoming("alice")
    assert incoming == {
        "requests": [
            {"id": "bob", "name": "Bob", "avatarUrl": "https://img/bob.png"},
            {"id": "carol", "name": "User", "avatarUrl": None},
        ]
    }
    # dave has no profile document
    assert await connections.fetch_outgoing("alice") == {"requests": []}


@pytest.mark.asyncio
async def test_fetch_connections_uses_fallback_name(connections, seed_user):
    await seed_user("bob")
    await connections.send("alice", "bob")
    await connections.accept("bob", "alice")

    result = await connections.fetch_connections("alice")
    assert result == {"connections": [{"id": "bob", "name": "Unnamed Connection", "avatarUrl": None}]}


@pytest.mark.asyncio
async def test_store_failure_surfaces_as_internal(connections, store):
    store.fail_commits = {1}

    with pytest.raises(InternalError):
        await connections.send("alice", "bob")
