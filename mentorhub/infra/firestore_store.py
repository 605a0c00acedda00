"""
Firestore-backed document store.

Wraps google-cloud-firestore's AsyncClient behind the DocumentStore
interface. The client is built by the hosting process at startup and closed
on shutdown.
"""

from __future__ import annotations

import inspect
from typing import Any, Dict, Iterable, List, Optional

from google.api_core import exceptions as gexc
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from mentorhub.core.logging import get_logger
from mentorhub.infra.store import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    Document,
    DocumentStore,
    SetRemove,
    SetUnion,
    StoreError,
    WriteBatch,
    unique_ids,
)

logger = get_logger(__name__)


def _to_firestore(value: Any) -> Any:
    if value is DELETE_FIELD:
        return firestore.DELETE_FIELD
    if value is SERVER_TIMESTAMP:
        return firestore.SERVER_TIMESTAMP
    if isinstance(value, SetUnion):
        return firestore.ArrayUnion(list(value.values))
    if isinstance(value, SetRemove):
        return firestore.ArrayRemove(list(value.values))
    if isinstance(value, dict):
        return {k: _to_firestore(v) for k, v in value.items()}
    return value


def _encode(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: _to_firestore(value) for key, value in data.items()}


class FirestoreWriteBatch(WriteBatch):
    def __init__(self, client: firestore.AsyncClient):
        super().__init__()
        self._client = client

    async def commit(self) -> None:
        self._check_limit()
        batch = self._client.batch()
        for op in self.ops:
            ref = self._client.collection(op.collection).document(op.doc_id)
            if op.kind == "delete":
                batch.delete(ref)
            elif op.kind == "update":
                batch.update(ref, _encode(op.data))
            else:
                batch.set(ref, _encode(op.data), merge=op.merge)
        try:
            await batch.commit()
        except gexc.GoogleAPICallError as exc:
            raise StoreError(f"batch commit failed: {exc}") from exc


class FirestoreDocumentStore(DocumentStore):
    def __init__(self, client: firestore.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(cls, project_id: Optional[str], credentials_path: Optional[str]) -> "FirestoreDocumentStore":
        credentials = None
        if credentials_path:
            from google.oauth2 import service_account

            credentials = service_account.Credentials.from_service_account_file(credentials_path)
        client = firestore.AsyncClient(project=project_id, credentials=credentials)
        logger.info("store.firestore.ready", project_id=project_id)
        return cls(client)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        snap = await self._client.collection(collection).document(doc_id).get()
        if not snap.exists:
            return None
        return Document(snap.id, snap.to_dict() or {})

    async def get_many(self, collection: str, doc_ids: Iterable[str]) -> List[Document]:
        ids = unique_ids(doc_ids)
        if not ids:
            return []
        refs = [self._client.collection(collection).document(doc_id) for doc_id in ids]
        found: Dict[str, Document] = {}
        # get_all does not preserve request order
        async for snap in self._client.get_all(refs):
            if snap.exists:
                found[snap.id] = Document(snap.id, snap.to_dict() or {})
        return [found[doc_id] for doc_id in ids if doc_id in found]

    async def query_contains(
        self,
        collection: str,
        field_name: str,
        value: Any,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        query = self._client.collection(collection).where(
            filter=FieldFilter(field_name, "array_contains", value)
        )
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        return [Document(snap.id, snap.to_dict() or {}) async for snap in query.stream()]

    async def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> bool:
        try:
            await self._client.collection(collection).document(doc_id).create(_encode(data))
        except gexc.Conflict:
            return False
        return True

    def new_id(self, collection: str) -> str:
        return self._client.collection(collection).document().id

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self._client)

    async def close(self) -> None:
        result = self._client.close()
        if inspect.isawaitable(result):
            await result
