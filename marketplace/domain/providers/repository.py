"""Provider repository - document store operations for provider applications"""

from typing import Optional

from ...collections import COLLECTION_PROVIDERS
from ...store import DocumentStore


class ProviderRepository:
    """Repository for provider application documents"""

    @staticmethod
    def create_application(store: DocumentStore, record: dict) -> str:
        return store.create(COLLECTION_PROVIDERS, record)

    @staticmethod
    def get_application(store: DocumentStore, application_id: str) -> Optional[dict]:
        return store.get(COLLECTION_PROVIDERS, application_id)

    @staticmethod
    def get_approved(store: DocumentStore) -> list[dict]:
        return store.query(COLLECTION_PROVIDERS, filters=[("status", "==", "approved")])

    @staticmethod
    def update_application(store: DocumentStore, application_id: str, updates: dict) -> None:
        store.update(COLLECTION_PROVIDERS, application_id, updates)

    @staticmethod
    def delete_application(store: DocumentStore, application_id: str) -> None:
        store.delete(COLLECTION_PROVIDERS, application_id)
