"""Booking router - catalog, booking wizard and customer bookings"""

import logging

from fastapi import APIRouter, Depends

from ...auth import require_user
from ...catalog import BOOKABLE_SERVICES, TIME_SLOTS, VEHICLE_TYPES
from ...services.payment_service import StripePaymentClient, get_payment_client
from ...session import SessionContext
from ...store import DocumentStore, get_document_store
from ...wizard_store import WizardSessionStore, get_wizard_store
from .schemas import BookingDraftUpdate, BookingResponse, BookingSubmitResponse, WizardStateResponse
from .service import BookingService, SettlementQueue, get_settlement_queue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    store: DocumentStore = Depends(get_document_store),
    wizards: WizardSessionStore = Depends(get_wizard_store),
    settlement: SettlementQueue = Depends(get_settlement_queue),
    payments: StripePaymentClient = Depends(get_payment_client),
) -> BookingService:
    return BookingService(store, wizards, settlement, payments)


@router.get("/catalog")
async def get_catalog():
    """Services, time slots and vehicle types offered in the booking wizard"""
    return {"services": BOOKABLE_SERVICES, "timeSlots": TIME_SLOTS, "vehicleTypes": list(VEHICLE_TYPES)}


@router.get("/wizard", response_model=WizardStateResponse)
async def get_booking_wizard(
    session: SessionContext = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_wizard(session.uid)


@router.patch("/wizard", response_model=WizardStateResponse)
async def update_booking_wizard(
    data: BookingDraftUpdate,
    session: SessionContext = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.update_wizard(session.uid, data)


@router.post("/wizard/advance", response_model=WizardStateResponse)
async def advance_booking_wizard(
    session: SessionContext = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.advance(session.uid)


@router.post("/wizard/retreat", response_model=WizardStateResponse)
async def retreat_booking_wizard(
    session: SessionContext = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.retreat(session.uid)


@router.post("/wizard/reset", response_model=WizardStateResponse)
async def reset_booking_wizard(
    session: SessionContext = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.reset(session.uid)


@router.post("/wizard/submit", response_model=BookingSubmitResponse, status_code=201)
async def submit_booking(
    session: SessionContext = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.submit(session)
    return BookingSubmitResponse(id=booking["id"], booking=BookingResponse(**booking))


@router.get("/mine", response_model=list[BookingResponse])
async def get_my_bookings(
    session: SessionContext = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
):
    return [BookingResponse(**b) for b in service.get_my_bookings(session.uid)]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    session: SessionContext = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse(**service.get_booking(booking_id, session))
