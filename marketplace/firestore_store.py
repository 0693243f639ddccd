"""Firestore backend for the document store gateway"""

import logging
from typing import Any, Iterable, Optional

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .store import (
    SERVER_TIMESTAMP,
    SUPPORTED_OPERATORS,
    DocumentNotFound,
    DocumentStore,
    Filter,
    Increment,
    StoreError,
)

logger = logging.getLogger(__name__)


def _translate(value: Any) -> Any:
    if value is SERVER_TIMESTAMP:
        return firestore.SERVER_TIMESTAMP
    if isinstance(value, Increment):
        return firestore.Increment(value.amount)
    return value


def _translate_all(data: dict) -> dict:
    return {k: _translate(v) for k, v in data.items() if k != "id"}


class FirestoreDocumentStore(DocumentStore):
    def __init__(self, client):
        self.client = client

    @classmethod
    def from_firebase_app(cls) -> "FirestoreDocumentStore":
        from .firebase_app import get_firebase_app

        return cls(firestore.client(app=get_firebase_app()))

    @staticmethod
    def _snapshot_to_dict(snapshot) -> dict:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return data

    def create(self, collection: str, data: dict) -> str:
        try:
            _, ref = self.client.collection(collection).add(_translate_all(data))
            logger.debug(f"📝 Created {collection}/{ref.id}")
            return ref.id
        except Exception as e:
            logger.error(f"❌ Firestore add failed for {collection}: {e}")
            raise StoreError(f"Failed to create document in {collection}") from e

    def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> None:
        try:
            self.client.collection(collection).document(doc_id).set(_translate_all(data), merge=merge)
        except Exception as e:
            logger.error(f"❌ Firestore set failed for {collection}/{doc_id}: {e}")
            raise StoreError(f"Failed to write {collection}/{doc_id}") from e

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        try:
            snapshot = self.client.collection(collection).document(doc_id).get()
        except Exception as e:
            logger.error(f"❌ Firestore get failed for {collection}/{doc_id}: {e}")
            raise StoreError(f"Failed to read {collection}/{doc_id}") from e
        if not snapshot.exists:
            return None
        return self._snapshot_to_dict(snapshot)

    def _filtered(self, collection: str, filters: Iterable[Filter]):
        query = self.client.collection(collection)
        for field, op, value in filters:
            if op not in SUPPORTED_OPERATORS:
                raise ValueError(f"Unsupported filter operator: {op}")
            query = query.where(filter=FieldFilter(field, op, value))
        return query

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        query = self._filtered(collection, filters)
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        try:
            return [self._snapshot_to_dict(snapshot) for snapshot in query.stream()]
        except Exception as e:
            logger.error(f"❌ Firestore query failed for {collection}: {e}")
            raise StoreError(f"Failed to query {collection}") from e

    def count(self, collection: str, filters: Iterable[Filter] = ()) -> int:
        query = self._filtered(collection, filters)
        try:
            results = query.count(alias="total").get()
        except Exception as e:
            logger.error(f"❌ Firestore count failed for {collection}: {e}")
            raise StoreError(f"Failed to count {collection}") from e
        return int(results[0][0].value) if results else 0

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        from google.api_core.exceptions import NotFound

        try:
            self.client.collection(collection).document(doc_id).update(_translate_all(data))
        except NotFound as e:
            raise DocumentNotFound(collection, doc_id) from e
        except Exception as e:
            logger.error(f"❌ Firestore update failed for {collection}/{doc_id}: {e}")
            raise StoreError(f"Failed to update {collection}/{doc_id}") from e

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            self.client.collection(collection).document(doc_id).delete()
        except Exception as e:
            logger.error(f"❌ Firestore delete failed for {collection}/{doc_id}: {e}")
            raise StoreError(f"Failed to delete {collection}/{doc_id}") from e
