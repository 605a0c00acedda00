"""
Connection requests

Per-pair state machine over friends/{uid} records:

    none --send(A,B)--> outgoing-pending(A->B) --accept(B,A)--> mutual friends
                                               --decline(B,A)--> none

Every transition is one atomic batch covering both records. Nothing here
locks across calls, so two calls racing on the same pair can interleave.
A send that finds the reverse request already pending is merged into an
accept; two sends whose reads both see nothing still leave two pending
edges, and whichever of send/accept runs next collapses them.
"""

from typing import Optional

from mentorhub.core.errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    NotFoundError,
    internal_errors,
    require_caller,
    require_id,
)
from mentorhub.core.logging import get_logger
from mentorhub.infra.store import DocumentStore
from mentorhub.repositories.relationships import RelationshipRepository
from mentorhub.repositories.users import UserRepository

logger = get_logger(__name__)


class ConnectionService:
    def __init__(self, store: DocumentStore, users: Optional[UserRepository] = None):
        self.store = store
        self.relationships = RelationshipRepository(store)
        self.users = users or UserRepository(store)

    def _target(self, caller_id: Optional[str], target_id) -> tuple:
        uid = require_caller(caller_id)
        target = require_id(target_id, "A valid target user ID is required.")
        if target == uid:
            raise InvalidArgumentError("You cannot target yourself.")
        return uid, target

    async def send(self, caller_id: Optional[str], target_id) -> dict:
        uid, target = self._target(caller_id, target_id)

        with internal_errors("connection.request", "Could not send the connection request.", uid=uid, target=target):
            mine = await self.relationships.get(uid)
            if mine.is_friend(target):
                raise AlreadyExistsError("Already connected.")

            batch = self.store.batch()
            if mine.has_incoming(target):
                # The target already asked us: treat the send as an accept
                self.relationships.stage_connect(batch, uid, target)
                await batch.commit()
                logger.info("connection.request.merged", uid=uid, target=target)
                return {"success": True, "connected": True}

            self.relationships.stage_request(batch, uid, target)
            await batch.commit()

        logger.info("connection.request.ok", uid=uid, target=target)
        return {"success": True}

    async def accept(self, caller_id: Optional[str], requester_id) -> dict:
        uid, requester = self._target(caller_id, requester_id)

        with internal_errors("connection.accept", "Could not accept the connection request.", uid=uid, requester=requester):
            mine = await self.relationships.get(uid)
            if not mine.has_incoming(requester):
                raise NotFoundError("No pending request from this user.")

            batch = self.store.batch()
            self.relationships.stage_connect(batch, uid, requester)
            await batch.commit()

        logger.info("connection.accept.ok", uid=uid, requester=requester)
        return {"success": True}

    async def decline(self, caller_id: Optional[str], requester_id) -> dict:
        uid, requester = self._target(caller_id, requester_id)

        with internal_errors("connection.decline", "Could not decline the connection request.", uid=uid, requester=requester):
            mine = await self.relationships.get(uid)
            if not mine.has_incoming(requester):
                raise NotFoundError("No pending request from this user.")

            batch = self.store.batch()
            self.relationships.stage_decline(batch, uid, requester)
            await batch.commit()

        logger.info("connection.decline.ok", uid=uid, requester=requester)
        return {"success": True}

    async def fetch_incoming(self, caller_id: Optional[str]) -> dict:
        uid = require_caller(caller_id)
        with internal_errors("connection.fetch_incoming", "Failed to fetch incoming requests.", uid=uid):
            record = await self.relationships.get(uid)
            return {"requests": await self.users.summaries(record.pending)}

    async def fetch_outgoing(self, caller_id: Optional[str]) -> dict:
        uid = require_caller(caller_id)
        with internal_errors("connection.fetch_outgoing", "Failed to fetch outgoing requests.", uid=uid):
            record = await self.relationships.get(uid)
            return {"requests": await self.users.summaries(record.outgoing)}

    async def fetch_connections(self, caller_id: Optional[str]) -> dict:
        uid = require_caller(caller_id)
        with internal_errors("connection.fetch_connections", "Failed to fetch connections.", uid=uid):
            record = await self.relationships.get(uid)
            connections = await self.users.summaries(record.friends, fallback_name="Unnamed Connection")
            return {"connections": connections}
