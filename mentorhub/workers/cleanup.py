"""
Group reference cleanup

RQ job for finishing a cascading group delete that stopped partway: removes
the group id from each listed member profile, chunked the same way as the
cascade. Also runnable by hand with member ids taken from the
group.delete.cascade_failed log line:

    python -m mentorhub.workers.cleanup <group_id> <uid> [<uid> ...]
"""

import argparse
import asyncio
from typing import List

from mentorhub.core.logging import get_logger, log_context, setup_logging
from mentorhub.infra.batch_writer import BatchWriter
from mentorhub.infra.store import DocumentStore
from mentorhub.infra.providers import build_store
from mentorhub.repositories.users import UserRepository

logger = get_logger(__name__)


async def remove_group_references_async(store: DocumentStore, group_id: str, member_ids: List[str]) -> int:
    users = UserRepository(store)
    with log_context(group_id=group_id):
        chunks = await BatchWriter(store).apply(
            member_ids,
            lambda batch, member: users.stage_group_ref_remove(batch, member, group_id),
            label="cleanup.group_refs",
        )
        logger.info("cleanup.group_refs.done", members=len(member_ids), chunks=chunks)
    return chunks


async def _run(group_id: str, member_ids: List[str]) -> int:
    store = build_store()
    try:
        return await remove_group_references_async(store, group_id, member_ids)
    finally:
        await store.close()


def remove_group_references(group_id: str, member_ids: List[str]) -> int:
    """RQ entry point. A failure propagates so RQ records the job as failed."""
    return asyncio.run(_run(group_id, list(member_ids)))


def main() -> None:
    parser = argparse.ArgumentParser(description="Remove a deleted group's id from member profiles")
    parser.add_argument("group_id")
    parser.add_argument("member_ids", nargs="+")
    args = parser.parse_args()

    setup_logging()
    remove_group_references(args.group_id, args.member_ids)


if __name__ == "__main__":
    main()
