"""
Document store abstraction

The services talk to this interface only. A store instance is created once
by the hosting process (see mentorhub.main lifespan) and handed to every
repository; nothing here is initialised at import time.

Atomicity boundary: one WriteBatch commit. There is no cross-call locking.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

# Firestore rejects commits above 500 writes
MAX_BATCH_WRITES = 500


class StoreError(Exception):
    """Base class for storage failures"""


class DocumentMissingError(StoreError):
    """update() targeted a document that does not exist"""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} does not exist")


class BatchLimitExceeded(StoreError):
    """More writes were staged than a single commit accepts"""


class SetUnion:
    """Add values to an array field, skipping ones already present."""

    def __init__(self, *values: Any):
        self.values: Tuple[Any, ...] = values

    def __repr__(self) -> str:
        return f"SetUnion{self.values!r}"


class SetRemove:
    """Remove every occurrence of the values from an array field."""

    def __init__(self, *values: Any):
        self.values: Tuple[Any, ...] = values

    def __repr__(self) -> str:
        return f"SetRemove{self.values!r}"


class _Sentinel:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


DELETE_FIELD = _Sentinel("DELETE_FIELD")
SERVER_TIMESTAMP = _Sentinel("SERVER_TIMESTAMP")


@dataclass
class Document:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass
class WriteOp:
    kind: str  # set | update | delete
    collection: str
    doc_id: str
    data: Optional[Dict[str, Any]] = None
    merge: bool = False


class WriteBatch(ABC):
    """Collects writes and applies them atomically on commit()."""

    def __init__(self):
        self.ops: List[WriteOp] = []

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> "WriteBatch":
        self.ops.append(WriteOp("set", collection, doc_id, dict(data), merge))
        return self

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self.ops.append(WriteOp("update", collection, doc_id, dict(data)))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self.ops.append(WriteOp("delete", collection, doc_id))
        return self

    def __len__(self) -> int:
        return len(self.ops)

    def _check_limit(self) -> None:
        if len(self.ops) > MAX_BATCH_WRITES:
            raise BatchLimitExceeded(
                f"{len(self.ops)} writes staged, limit is {MAX_BATCH_WRITES}"
            )

    @abstractmethod
    async def commit(self) -> None:
        ...


class DocumentStore(ABC):
    """Asynchronous document store used by all repositories."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def get_many(self, collection: str, doc_ids: Iterable[str]) -> List[Document]:
        """Fetch existing documents in request order; missing ids are skipped."""

    @abstractmethod
    async def query_contains(
        self,
        collection: str,
        field_name: str,
        value: Any,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        """Documents whose array field contains value."""

    @abstractmethod
    async def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> bool:
        """Create the document if absent. Returns False when it already exists."""

    @abstractmethod
    def new_id(self, collection: str) -> str:
        ...

    @abstractmethod
    def batch(self) -> WriteBatch:
        ...

    async def close(self) -> None:
        return None


def unique_ids(ids: Iterable[str]) -> List[str]:
    """Deduplicate ids preserving first occurrence, dropping blanks."""
    seen = set()
    result = []
    for item in ids:
        if not isinstance(item, str) or not item or item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result
