"""Document store gateway.

Thin wrappers around document create/read/update/delete and filtered queries
against named collections. Two backends share one interface: the SQLAlchemy
``documents`` table (default, also used by the tests) and Firestore
(``firestore_store.FirestoreDocumentStore``).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .config import DOCUMENT_STORE_BACKEND
from .models import Document, generate_document_id

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    """Sentinel resolved to the store's clock when a document is written"""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class Increment:
    """Sentinel for an atomic-looking numeric increment inside update()"""

    def __init__(self, amount: int = 1):
        self.amount = amount

    def __repr__(self):
        return f"Increment({self.amount})"


class StoreError(Exception):
    """Raised when the backing store rejects or fails a call"""


class DocumentNotFound(StoreError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


SUPPORTED_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "not-in", "array-contains")

Filter = tuple[str, str, Any]


class DocumentStore:
    """Interface every backend implements"""

    def create(self, collection: str, data: dict) -> str:
        raise NotImplementedError

    def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> None:
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        raise NotImplementedError

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        raise NotImplementedError

    def count(self, collection: str, filters: Iterable[Filter] = ()) -> int:
        return len(self.query(collection, filters))

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def matches_filter(document: dict, field: str, op: str, value: Any) -> bool:
    """Evaluate one filter the way a hosted document store does: a missing field never matches"""
    if field not in document:
        return False
    actual = document[field]
    try:
        if op == "==":
            return actual == value
        if op == "!=":
            return actual != value
        if op == "<":
            return actual < value
        if op == "<=":
            return actual <= value
        if op == ">":
            return actual > value
        if op == ">=":
            return actual >= value
        if op == "in":
            return actual in value
        if op == "not-in":
            return actual not in value
        if op == "array-contains":
            return isinstance(actual, list) and value in actual
    except TypeError:
        # Mismatched types (e.g. None < datetime) simply don't match
        return False
    raise ValueError(f"Unsupported filter operator: {op}")


_TYPE_ORDER = ((bool, 1), ((int, float), 2), (datetime, 3), (str, 4), (bytes, 5), (list, 6), (dict, 7))


def order_key(value: Any) -> tuple:
    """Sort key ordering values by type first, then by value, like a hosted document store"""
    for types, rank in _TYPE_ORDER:
        if isinstance(value, types):
            return rank, value
    return len(_TYPE_ORDER) + 1, value


def _encode(value: Any) -> Any:
    """Make a value JSON-safe; datetimes are tagged so they round-trip"""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"$date": value.isoformat()}
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value.keys()) == {"$date"}:
            return datetime.fromisoformat(value["$date"])
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def _resolve_sentinels(data: dict, current: Optional[dict] = None) -> dict:
    now = utcnow()
    resolved = {}
    for key, value in data.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = now
        elif isinstance(value, Increment):
            base = (current or {}).get(key) or 0
            resolved[key] = base + value.amount
        else:
            resolved[key] = value
    return resolved


class SqlDocumentStore(DocumentStore):
    """Documents kept as JSON rows keyed by (collection, id).

    String equality filters run in SQL against the JSON column. Every filter
    is then re-checked in Python, so range, membership and mixed-type
    filters keep the same semantics across SQL dialects.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _row(self, db: Session, collection: str, doc_id: str) -> Optional[Document]:
        return (
            db.query(Document)
            .filter(Document.collection == collection, Document.id == doc_id)
            .first()
        )

    @staticmethod
    def _to_dict(row: Document) -> dict:
        data = _decode(row.data or {})
        data["id"] = row.id
        return data

    def create(self, collection: str, data: dict) -> str:
        doc_id = generate_document_id()
        payload = _resolve_sentinels({k: v for k, v in data.items() if k != "id"})
        db = self.session_factory()
        try:
            db.add(Document(collection=collection, id=doc_id, data=_encode(payload)))
            db.commit()
            logger.debug(f"📝 Created {collection}/{doc_id}")
            return doc_id
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Failed to create document in {collection}: {e}")
            raise StoreError(f"Failed to create document in {collection}") from e
        finally:
            db.close()

    def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> None:
        db = self.session_factory()
        try:
            row = self._row(db, collection, doc_id)
            current = _decode(row.data or {}) if row else {}
            payload = _resolve_sentinels({k: v for k, v in data.items() if k != "id"}, current)
            if row is None:
                db.add(Document(collection=collection, id=doc_id, data=_encode(payload)))
            else:
                row.data = _encode({**current, **payload} if merge else payload)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Failed to set {collection}/{doc_id}: {e}")
            raise StoreError(f"Failed to write {collection}/{doc_id}") from e
        finally:
            db.close()

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        db = self.session_factory()
        try:
            row = self._row(db, collection, doc_id)
            return self._to_dict(row) if row else None
        except Exception as e:
            logger.error(f"❌ Failed to read {collection}/{doc_id}: {e}")
            raise StoreError(f"Failed to read {collection}/{doc_id}") from e
        finally:
            db.close()

    @staticmethod
    def _pushed_filter(field: str, op: str, value: Any):
        """SQL clause for a string equality filter, or None to filter in Python"""
        if op == "==" and isinstance(value, str):
            return Document.data[field].as_string() == value
        return None

    def _select(self, db: Session, collection: str, filters: list[Filter]):
        """Collection query with pushable filters applied and the rest returned"""
        select = db.query(Document).filter(Document.collection == collection)
        remaining = []
        for field, op, value in filters:
            clause = self._pushed_filter(field, op, value)
            if clause is None:
                remaining.append((field, op, value))
            else:
                select = select.filter(clause)
        return select, remaining

    @staticmethod
    def _check_operators(filters: list[Filter]) -> None:
        for _, op, _ in filters:
            if op not in SUPPORTED_OPERATORS:
                raise ValueError(f"Unsupported filter operator: {op}")

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        filters = list(filters)
        self._check_operators(filters)

        db = self.session_factory()
        try:
            select, remaining = self._select(db, collection, filters)
            select = select.order_by(Document.created_at, Document.id)
            if limit is not None and not remaining and not order_by:
                select = select.limit(limit)
            documents = [self._to_dict(row) for row in select.all()]
        except Exception as e:
            logger.error(f"❌ Failed to query {collection}: {e}")
            raise StoreError(f"Failed to query {collection}") from e
        finally:
            db.close()

        documents = [
            doc
            for doc in documents
            if all(matches_filter(doc, field, op, value) for field, op, value in filters)
        ]
        if order_by:
            # Documents without the ordering field drop out, as in the hosted store
            documents = [doc for doc in documents if doc.get(order_by) is not None]
            try:
                documents.sort(key=lambda doc: order_key(doc[order_by]), reverse=descending)
            except TypeError as e:
                logger.error(f"❌ Cannot order {collection} by {order_by}: {e}")
                raise StoreError(f"Cannot order {collection} by {order_by}") from e
        if limit is not None:
            documents = documents[:limit]
        return documents

    def count(self, collection: str, filters: Iterable[Filter] = ()) -> int:
        filters = list(filters)
        self._check_operators(filters)

        db = self.session_factory()
        try:
            select, remaining = self._select(db, collection, filters)
            if not remaining:
                return select.with_entities(func.count()).scalar() or 0
        except Exception as e:
            logger.error(f"❌ Failed to count {collection}: {e}")
            raise StoreError(f"Failed to count {collection}") from e
        finally:
            db.close()
        return len(self.query(collection, filters))

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        db = self.session_factory()
        try:
            row = self._row(db, collection, doc_id)
            if row is None:
                raise DocumentNotFound(collection, doc_id)
            current = _decode(row.data or {})
            current.update(_resolve_sentinels(data, current))
            row.data = _encode(current)
            db.commit()
        except DocumentNotFound:
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Failed to update {collection}/{doc_id}: {e}")
            raise StoreError(f"Failed to update {collection}/{doc_id}") from e
        finally:
            db.close()

    def delete(self, collection: str, doc_id: str) -> None:
        db = self.session_factory()
        try:
            row = self._row(db, collection, doc_id)
            if row is not None:
                db.delete(row)
                db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Failed to delete {collection}/{doc_id}: {e}")
            raise StoreError(f"Failed to delete {collection}/{doc_id}") from e
        finally:
            db.close()


_store: Optional[DocumentStore] = None


def build_document_store(backend: str = DOCUMENT_STORE_BACKEND) -> DocumentStore:
    if backend == "firestore":
        from .firestore_store import FirestoreDocumentStore

        logger.info("🔥 Using Firestore document store")
        return FirestoreDocumentStore.from_firebase_app()

    from .database import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("🗄️ Using SQL document store")
    return SqlDocumentStore(SessionLocal)


def get_document_store() -> DocumentStore:
    """FastAPI dependency returning the process-wide store"""
    global _store
    if _store is None:
        _store = build_document_store()
    return _store
