"""Waitlist repository - document store operations for waitlist entries"""

from typing import Optional

from ...collections import COLLECTION_WAITLIST
from ...store import DocumentStore, Increment


class WaitlistRepository:
    """Repository for waitlist documents"""

    @staticmethod
    def create_entry(store: DocumentStore, data: dict) -> str:
        return store.create(COLLECTION_WAITLIST, data)

    @staticmethod
    def get_all(store: DocumentStore) -> list[dict]:
        return store.query(COLLECTION_WAITLIST)

    @staticmethod
    def count(store: DocumentStore) -> int:
        return store.count(COLLECTION_WAITLIST)

    @staticmethod
    def get_recent(store: DocumentStore, limit: int = 20) -> list[dict]:
        return store.query(COLLECTION_WAITLIST, order_by="createdAt", descending=True, limit=limit)

    @staticmethod
    def find_by_email(store: DocumentStore, email: str) -> Optional[dict]:
        matches = store.query(COLLECTION_WAITLIST, filters=[("email", "==", email)], limit=1)
        return matches[0] if matches else None

    @staticmethod
    def find_by_referral_code(store: DocumentStore, code: str) -> Optional[dict]:
        matches = store.query(COLLECTION_WAITLIST, filters=[("referralCode", "==", code)], limit=1)
        return matches[0] if matches else None

    @staticmethod
    def increment_referral_count(store: DocumentStore, entry_id: str) -> None:
        store.update(COLLECTION_WAITLIST, entry_id, {"referralCount": Increment(1)})
