"""
Group lifecycle

Membership changes that touch a bounded set of documents (the group, its
channel, one profile) commit as a single batch. Profile references for the
whole membership fan out through BatchWriter, one atomic chunk at a time;
if a chunk fails after the group record is gone, the leftover member ids
are logged and, when the cleanup queue is configured, handed to an RQ job.
"""

import asyncio
from typing import List, Optional

from mentorhub.core.errors import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    internal_errors,
    require_caller,
    require_id,
)
from mentorhub.core.logging import get_logger, log_context
from mentorhub.core.time import to_iso
from mentorhub.infra.batch_writer import BatchWriter, PartialBatchError
from mentorhub.infra.queue import JobQueue
from mentorhub.infra.store import DocumentStore, unique_ids
from mentorhub.models.group import GroupRecord
from mentorhub.repositories.channels import ChannelRepository
from mentorhub.repositories.groups import GroupRepository
from mentorhub.repositories.users import UserRepository
from mentorhub.services.chat import ChatDirectory

logger = get_logger(__name__)

CLEANUP_JOB = "mentorhub.workers.cleanup.remove_group_references"

PARTICIPANT_ACTIONS = {"add": "added", "remove": "removed"}


def _initial_members(owner_id: str, initial_members) -> List[str]:
    if initial_members is None:
        initial_members = []
    if not isinstance(initial_members, list) or not all(isinstance(m, str) for m in initial_members):
        raise InvalidArgumentError("Initial members must be a list of user IDs.")
    return unique_ids([owner_id] + [m.strip() for m in initial_members])


class GroupService:
    def __init__(
        self,
        store: DocumentStore,
        chat: Optional[ChatDirectory] = None,
        users: Optional[UserRepository] = None,
        writer: Optional[BatchWriter] = None,
        cleanup_queue: Optional[JobQueue] = None,
    ):
        self.store = store
        self.groups = GroupRepository(store)
        self.channels = ChannelRepository(store)
        self.chat = chat or ChatDirectory(store)
        self.users = users or UserRepository(store)
        self.writer = writer or BatchWriter(store)
        self.cleanup_queue = cleanup_queue

    async def _load(self, group_id: str) -> GroupRecord:
        group = await self.groups.get(group_id)
        if group is None:
            raise NotFoundError("Group not found.")
        return group

    async def create(self, caller_id: Optional[str], group_name, initial_members=None) -> dict:
        uid = require_caller(caller_id)
        if not isinstance(group_name, str) or not group_name.strip():
            raise InvalidArgumentError("Group name is required.")
        name = group_name.strip()
        members = _initial_members(uid, initial_members)

        with internal_errors("group.create", "Failed to create group.", uid=uid):
            group_id = self.groups.new_id()
            batch = self.store.batch()
            self.groups.stage_create(batch, group_id, name, uid, members)
            await self.chat.initialize_group_channel(group_id, name, members, batch=batch)
            await batch.commit()
            logger.info("group.create.ok", uid=uid, group_id=group_id, members=len(members))

            try:
                await self.writer.apply(
                    members,
                    lambda b, member: self.users.stage_group_ref_add(b, member, group_id),
                    label="group.create.refs",
                )
            except PartialBatchError as exc:
                logger.error(
                    "group.create.refs_incomplete",
                    group_id=group_id,
                    chunk=exc.chunk_index,
                    remaining_ids=exc.remaining,
                )
                raise InternalError(
                    "Group created, but member references are incomplete.",
                    details={"groupId": group_id},
                ) from exc

        return {"id": group_id, "name": name, "members": members}

    async def delete(self, caller_id: Optional[str], group_id) -> dict:
        uid = require_caller(caller_id)
        gid = require_id(group_id, "A valid group ID is required.")

        with log_context(group_id=gid), internal_errors("group.delete", "Failed to delete group.", uid=uid):
            group = await self._load(gid)
            if group.owner_id != uid:
                raise PermissionDeniedError("Only the group owner can delete this group.")

            await self.groups.delete(gid)
            logger.info("group.delete.record_removed", uid=uid, group_id=gid, members=len(group.members))

            try:
                chunks = await self.writer.apply(
                    group.members,
                    lambda b, member: self.users.stage_group_ref_remove(b, member, gid),
                    label="group.delete.refs",
                )
            except PartialBatchError as exc:
                self._hand_off_cleanup(gid, exc)
                raise InternalError(
                    "Group deleted, but member cleanup is incomplete.",
                    details={"groupId": gid, "remaining": len(exc.remaining)},
                ) from exc

        logger.info("group.delete.ok", uid=uid, group_id=gid, chunks=chunks)
        return {"success": True, "groupId": gid}

    def _hand_off_cleanup(self, group_id: str, exc: PartialBatchError) -> None:
        logger.error(
            "group.delete.cascade_failed",
            group_id=group_id,
            chunk=exc.chunk_index,
            committed=len(exc.committed),
            remaining_ids=exc.remaining,
            error=str(exc.cause),
        )
        if self.cleanup_queue is None:
            return
        try:
            job = self.cleanup_queue.enqueue(CLEANUP_JOB, args=(group_id, list(exc.remaining)))
        except Exception as enqueue_exc:
            logger.error("group.delete.cleanup_enqueue_failed", group_id=group_id, error=str(enqueue_exc))
            return
        logger.info("group.delete.cleanup_enqueued", group_id=group_id, job_id=job.id)

    async def add_participant(self, caller_id: Optional[str], group_id, user_id) -> dict:
        uid = require_caller(caller_id)
        gid = require_id(group_id, "A valid group ID is required.")
        target = require_id(user_id, "A valid user ID is required.")

        with log_context(group_id=gid), internal_errors(
            "group.add_participant", "Failed to add user to group.", uid=uid
        ):
            group = await self._load(gid)
            if not group.is_member(uid):
                raise PermissionDeniedError("Only group members can add participants.")

            batch = self.store.batch()
            self.groups.stage_add_member(batch, gid, target)
            self.channels.stage_add_participant(batch, gid, target)
            self.users.stage_group_ref_add(batch, target, gid)
            await batch.commit()

            group = await self._load(gid)
            members = await self.users.summaries(group.members)

        logger.info("group.add_participant.ok", uid=uid, group_id=gid, target=target)
        return {
            "success": True,
            "groupId": gid,
            "message": f"User {target} added to group.",
            "groupData": {
                "name": group.name,
                "ownerId": group.owner_id,
                "adminIds": group.admin_ids,
                "members": members,
            },
        }

    async def manage_participants(self, caller_id: Optional[str], chat_id, participant_id, action) -> dict:
        uid = require_caller(caller_id)
        gid = require_id(chat_id, "A valid group ID is required.")
        target = require_id(participant_id, "A valid participant ID is required.")
        if action not in PARTICIPANT_ACTIONS:
            raise InvalidArgumentError("Action must be 'add' or 'remove'.")

        with log_context(group_id=gid), internal_errors(
            "group.manage_participants", "Failed to update group members.", uid=uid
        ):
            group = await self._load(gid)
            if not group.is_admin(uid):
                raise PermissionDeniedError("Only group admins can manage participants.")
            if action == "remove" and target == group.owner_id:
                raise InvalidArgumentError("The group owner cannot be removed.")

            batch = self.store.batch()
            if action == "add":
                self.groups.stage_add_member(batch, gid, target)
                self.channels.stage_add_participant(batch, gid, target)
                self.users.stage_group_ref_add(batch, target, gid)
            else:
                self.groups.stage_remove_member(batch, gid, target)
                self.channels.stage_remove_participant(batch, gid, target)
                self.users.stage_group_ref_remove(batch, target, gid)
            await batch.commit()

        logger.info("group.manage_participants.ok", uid=uid, group_id=gid, target=target, action=action)
        return {"success": True, "message": f"{target} was {PARTICIPANT_ACTIONS[action]} successfully."}

    async def fetch_user_groups(self, caller_id: Optional[str]) -> dict:
        uid = require_caller(caller_id)

        with internal_errors("group.fetch", "Failed to load groups.", uid=uid):
            groups = await self.groups.list_for_member(uid)
            member_lists = await asyncio.gather(*(self.users.summaries(g.members) for g in groups))

        return {
            "success": True,
            "groups": [
                {
                    "id": group.id,
                    "name": group.name or "Unnamed Group",
                    "members": members,
                    "ownerId": group.owner_id,
                    "adminIds": group.admin_ids,
                    "createdAt": to_iso(group.created_at),
                }
                for group, members in zip(groups, member_lists)
            ],
        }
