"""
Chunked fan-out writes.

Splits a mutation over many documents into sequential atomic batches so
each commit stays under the store's per-request write ceiling. Every chunk
is atomic on its own; the run as a whole is not. A failure in chunk k
leaves chunks 1..k-1 committed and k..last unapplied, and nothing is rolled
back or retried here.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, TypeVar

from mentorhub.core.config import settings
from mentorhub.core.logging import get_logger
from mentorhub.infra.store import MAX_BATCH_WRITES, DocumentStore, WriteBatch

logger = get_logger(__name__)

T = TypeVar("T")

Mutation = Callable[[WriteBatch, T], None]


class PartialBatchError(Exception):
    """A chunk failed after earlier chunks were committed."""

    def __init__(self, committed: List, remaining: List, chunk_index: int, cause: BaseException):
        self.committed = committed
        self.remaining = remaining
        self.chunk_index = chunk_index
        self.cause = cause
        super().__init__(
            f"chunk {chunk_index} failed after {len(committed)} items committed, "
            f"{len(remaining)} items not applied: {cause}"
        )


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BatchWriter:
    def __init__(self, store: DocumentStore, chunk_size: Optional[int] = None):
        if chunk_size is None:
            chunk_size = settings.batch_chunk_size
        if not 1 <= chunk_size <= MAX_BATCH_WRITES:
            raise ValueError(f"chunk_size must be between 1 and {MAX_BATCH_WRITES}")
        self.store = store
        self.chunk_size = chunk_size

    async def apply(self, items: Sequence[T], mutation: Mutation, label: str = "batch") -> int:
        """Apply mutation to every item, one commit per chunk. Returns chunks committed."""
        items = list(items)
        chunks = chunked(items, self.chunk_size)
        committed: List[T] = []

        for index, chunk in enumerate(chunks, start=1):
            batch = self.store.batch()
            for item in chunk:
                mutation(batch, item)
            try:
                await batch.commit()
            except Exception as exc:
                remaining = items[len(committed):]
                logger.error(
                    "batch.chunk.failed",
                    label=label,
                    chunk=index,
                    chunks=len(chunks),
                    committed=len(committed),
                    remaining=len(remaining),
                    error=str(exc),
                )
                raise PartialBatchError(committed, remaining, index, exc) from exc
            committed.extend(chunk)
            logger.debug(
                "batch.chunk.committed",
                label=label,
                chunk=index,
                chunks=len(chunks),
                size=len(chunk),
            )

        return len(chunks)
