"""Booking repository - document store operations for bookings"""

from typing import Optional

from ...collections import COLLECTION_BOOKINGS, COLLECTION_PROVIDERS
from ...store import DocumentStore


class BookingRepository:
    """Repository for booking documents"""

    @staticmethod
    def create_booking(store: DocumentStore, record: dict) -> str:
        return store.create(COLLECTION_BOOKINGS, record)

    @staticmethod
    def get_booking(store: DocumentStore, booking_id: str) -> Optional[dict]:
        return store.get(COLLECTION_BOOKINGS, booking_id)

    @staticmethod
    def get_customer_bookings(store: DocumentStore, customer_id: str) -> list[dict]:
        return store.query(
            COLLECTION_BOOKINGS,
            filters=[("customerId", "==", customer_id)],
            order_by="createdAt",
            descending=True,
        )

    @staticmethod
    def get_provider_bookings(store: DocumentStore, provider_id: str) -> list[dict]:
        return store.query(COLLECTION_BOOKINGS, filters=[("providerId", "==", provider_id)])

    @staticmethod
    def get_all(store: DocumentStore) -> list[dict]:
        return store.query(COLLECTION_BOOKINGS)

    @staticmethod
    def get_approved_provider(store: DocumentStore, provider_id: str) -> Optional[dict]:
        provider = store.get(COLLECTION_PROVIDERS, provider_id)
        if provider and provider.get("status") == "approved":
            return provider
        return None
