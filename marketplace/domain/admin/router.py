"""Admin router - waitlist and booking analytics, provider approval"""

import logging

from fastapi import APIRouter, Depends

from ...analytics import aggregate_bookings, aggregate_waitlist
from ...auth import require_admin
from ...session import SessionContext
from ...store import DocumentStore, get_document_store, utcnow
from ..bookings.repository import BookingRepository
from ..providers.schemas import ProviderApprovalResponse
from ..providers.service import ProviderService
from ..waitlist.repository import WaitlistRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

RECENT_SIGNUPS_LIMIT = 20


def _recent_signup_row(entry: dict) -> dict:
    return {
        "id": entry.get("id"),
        "name": entry.get("name"),
        "email": entry.get("email"),
        "city": entry.get("city"),
        "vehicleType": entry.get("vehicleType"),
        "howSoon": entry.get("howSoon"),
        "createdAt": entry.get("createdAt"),
    }


@router.get("/analytics/waitlist")
async def waitlist_analytics(
    session: SessionContext = Depends(require_admin),
    store: DocumentStore = Depends(get_document_store),
):
    """Grouped waitlist counts plus the most recent signups"""
    logger.info(f"📊 Waitlist analytics requested by {session.uid}")
    entries = WaitlistRepository.get_all(store)
    analytics = aggregate_waitlist(entries, utcnow())
    recent = WaitlistRepository.get_recent(store, limit=RECENT_SIGNUPS_LIMIT)
    analytics["recentEntries"] = [_recent_signup_row(e) for e in recent]
    return analytics


@router.get("/analytics/bookings")
async def booking_analytics(
    session: SessionContext = Depends(require_admin),
    store: DocumentStore = Depends(get_document_store),
):
    logger.info(f"📊 Booking analytics requested by {session.uid}")
    return aggregate_bookings(BookingRepository.get_all(store), utcnow())


@router.post("/providers/{application_id}/approve", response_model=ProviderApprovalResponse)
async def approve_provider(
    application_id: str,
    session: SessionContext = Depends(require_admin),
    store: DocumentStore = Depends(get_document_store),
):
    application = ProviderService(store).approve(application_id)
    logger.info(f"👤 Admin {session.uid} approved provider application {application_id}")
    return ProviderApprovalResponse(
        id=application["id"],
        status=application["status"],
        userId=application.get("userId"),
        approvedAt=application.get("approvedAt"),
    )
