"""
In-process document store.

Used when STORE_PROVIDER=MEMORY (local development) and by the test suite.
Each commit is applied under one asyncio.Lock, so a batch is atomic with
respect to every other batch in the process. Documents are deep-copied on
the way in and out so callers never share state with the store.
"""

from __future__ import annotations

import asyncio
import copy
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set

from mentorhub.core.time import utcnow
from mentorhub.infra.store import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    Document,
    DocumentMissingError,
    DocumentStore,
    SetRemove,
    SetUnion,
    StoreError,
    WriteBatch,
)


def _union(current: Any, values) -> list:
    result = list(current) if isinstance(current, list) else []
    for value in values:
        if value not in result:
            result.append(value)
    return result


def _remove(current: Any, values) -> list:
    if not isinstance(current, list):
        return []
    return [item for item in current if item not in values]


def _resolve(value: Any, now) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {k: _resolve(v, now) for k, v in value.items()}
    return copy.deepcopy(value)


def _apply_fields(target: Dict[str, Any], data: Dict[str, Any], now) -> Dict[str, Any]:
    # Nested maps are written whole; only top-level fields merge
    for key, value in data.items():
        if value is DELETE_FIELD:
            target.pop(key, None)
        elif isinstance(value, SetUnion):
            target[key] = _union(target.get(key), value.values)
        elif isinstance(value, SetRemove):
            target[key] = _remove(target.get(key), value.values)
        else:
            target[key] = _resolve(value, now)
    return target


class MemoryWriteBatch(WriteBatch):
    def __init__(self, store: "MemoryDocumentStore"):
        super().__init__()
        self._store = store

    async def commit(self) -> None:
        self._check_limit()
        await self._store._apply(self.ops)


class MemoryDocumentStore(DocumentStore):
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self.commit_count = 0
        # 1-based commit ordinals that should fail, for exercising partial failures
        self.fail_commits: Set[int] = set()

    def _docs(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        data = self._docs(collection).get(doc_id)
        if data is None:
            return None
        return Document(doc_id, copy.deepcopy(data))

    async def get_many(self, collection: str, doc_ids: Iterable[str]) -> List[Document]:
        docs = self._docs(collection)
        result = []
        seen = set()
        for doc_id in doc_ids:
            if doc_id in seen or doc_id not in docs:
                continue
            seen.add(doc_id)
            result.append(Document(doc_id, copy.deepcopy(docs[doc_id])))
        return result

    async def query_contains(
        self,
        collection: str,
        field_name: str,
        value: Any,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        matches = [
            Document(doc_id, copy.deepcopy(data))
            for doc_id, data in self._docs(collection).items()
            if isinstance(data.get(field_name), list) and value in data[field_name]
        ]
        if order_by:
            with_key = [d for d in matches if d.get(order_by) is not None]
            without_key = [d for d in matches if d.get(order_by) is None]
            with_key.sort(key=lambda d: d.get(order_by), reverse=descending)
            matches = with_key + without_key
        return matches

    async def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> bool:
        async with self._lock:
            docs = self._docs(collection)
            if doc_id in docs:
                return False
            docs[doc_id] = _apply_fields({}, data, utcnow())
            return True

    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex[:20]

    def batch(self) -> MemoryWriteBatch:
        return MemoryWriteBatch(self)

    async def _apply(self, ops) -> None:
        async with self._lock:
            self.commit_count += 1
            if self.commit_count in self.fail_commits:
                raise StoreError(f"injected failure on commit {self.commit_count}")

            now = utcnow()
            # Stage every change on copies first so a failing op writes nothing
            staged: Dict[tuple, Optional[Dict[str, Any]]] = {}

            def current(collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
                key = (collection, doc_id)
                if key in staged:
                    return staged[key]
                existing = self._docs(collection).get(doc_id)
                return copy.deepcopy(existing) if existing is not None else None

            for op in ops:
                key = (op.collection, op.doc_id)
                doc = current(op.collection, op.doc_id)
                if op.kind == "delete":
                    staged[key] = None
                elif op.kind == "update":
                    if doc is None:
                        raise DocumentMissingError(op.collection, op.doc_id)
                    staged[key] = _apply_fields(doc, op.data, now)
                elif op.merge:
                    staged[key] = _apply_fields(doc or {}, op.data, now)
                else:
                    staged[key] = _apply_fields({}, op.data, now)

            for (collection, doc_id), data in staged.items():
                if data is None:
                    self._docs(collection).pop(doc_id, None)
                else:
                    self._docs(collection)[doc_id] = data

    def dump(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Snapshot of a whole collection."""
        return copy.deepcopy(self._docs(collection))
