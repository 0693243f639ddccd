"""Booking service - booking wizard, submission and settlement hand-off"""

import logging
from typing import Optional

from arq import create_pool
from fastapi import HTTPException

from ...catalog import get_service
from ...config import SETTLEMENT_DELAY_SECONDS
from ...notifications import notify_booking_created
from ...services.payment_service import PaymentError, StripePaymentClient
from ...session import SessionContext
from ...store import DocumentStore
from ...wizard import SubmissionFailed, Wizard, WizardError
from ...wizard_store import WizardSessionStore
from ...worker import SETTLEMENT_TASK, get_redis_settings
from .flow import BOOKING_FLOW
from .repository import BookingRepository
from .schemas import BookingDraftUpdate

logger = logging.getLogger(__name__)


class SettlementQueue:
    """Enqueues the deferred payment settlement job"""

    def __init__(self, defer_seconds: int = SETTLEMENT_DELAY_SECONDS):
        self.defer_seconds = defer_seconds

    async def enqueue(self, booking_id: str) -> Optional[str]:
        pool = await create_pool(get_redis_settings())
        try:
            job = await pool.enqueue_job(
                SETTLEMENT_TASK,
                booking_id,
                _job_id=f"settle:{booking_id}",
                _defer_by=self.defer_seconds,
            )
            return job.job_id if job else None
        finally:
            await pool.close()


def get_settlement_queue() -> SettlementQueue:
    return SettlementQueue()


class BookingService:
    """Service layer for the booking wizard"""

    def __init__(
        self,
        store: DocumentStore,
        wizards: WizardSessionStore,
        settlement: Optional[SettlementQueue] = None,
        payments: Optional[StripePaymentClient] = None,
    ):
        self.store = store
        self.wizards = wizards
        self.settlement = settlement
        self.payments = payments or StripePaymentClient()
        self.repo = BookingRepository()

    def _load(self, uid: str) -> Wizard:
        return self.wizards.load(BOOKING_FLOW, uid)

    def _provider(self, provider_id: Optional[str]) -> Optional[dict]:
        if not provider_id:
            return None
        provider = self.repo.get_approved_provider(self.store, provider_id)
        if provider is None:
            raise HTTPException(status_code=400, detail="This provider is not available for booking")
        return provider

    def get_wizard(self, uid: str) -> dict:
        return self._load(uid).snapshot()

    def update_wizard(self, uid: str, data: BookingDraftUpdate) -> dict:
        fields = data.draft_fields()
        if fields.get("providerId"):
            self._provider(fields["providerId"])
        return self.wizards.update(BOOKING_FLOW, uid, fields)

    def advance(self, uid: str) -> dict:
        return self.wizards.advance(BOOKING_FLOW, uid)

    def retreat(self, uid: str) -> dict:
        return self.wizards.retreat(BOOKING_FLOW, uid)

    def reset(self, uid: str) -> dict:
        return self.wizards.reset(BOOKING_FLOW, uid)

    async def _issue_payment_intent(self, wizard: Wizard, uid: str, provider: Optional[dict]) -> Optional[str]:
        """Intent for the catalog price of the drafted service, when a card was attached"""
        draft = wizard.draft
        service = get_service(draft.get("serviceId"))
        if not draft.get("paymentMethodId") or service is None:
            return None
        if not wizard.is_terminal or wizard.incomplete_steps():
            return None

        try:
            intent = await self.payments.create_payment_intent(
                service["price"],
                metadata={
                    "customerId": uid,
                    "serviceId": service["id"],
                    "providerId": provider.get("id") if provider else None,
                },
            )
        except PaymentError as e:
            logger.error(f"❌ Error creating payment intent for {uid}: {e.message}")
            raise HTTPException(status_code=e.status_code, detail=e.message) from e
        return intent["id"]

    async def submit(self, session: SessionContext) -> dict:
        """Persist the booking, then hand payment settlement to the worker"""
        uid = session.uid
        wizard = self._load(uid)
        provider = self._provider(wizard.draft.get("providerId"))
        profile = session.profile or {}
        customer = {
            "uid": uid,
            "email": session.identity.email or profile.get("email"),
            "name": profile.get("displayName"),
        }

        payment_intent_id = await self._issue_payment_intent(wizard, uid, provider)

        try:
            booking_id = wizard.submit(
                lambda record: self.repo.create_booking(self.store, record),
                customer=customer,
                provider=provider,
                payment_intent_id=payment_intent_id,
            )
        except WizardError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except SubmissionFailed as e:
            logger.error(f"❌ Error creating booking for {uid}: {e.__cause__}")
            raise HTTPException(status_code=502, detail=e.message) from e

        self.wizards.clear(BOOKING_FLOW, uid)
        booking = self.repo.get_booking(self.store, booking_id)
        logger.info(
            f"✅ Booking {booking_id} saved: ${booking['totalAmount']} "
            f"(platform ${booking['platformFee']}, provider ${booking['providerAmount']})"
        )

        if self.settlement is not None:
            try:
                await self.settlement.enqueue(booking_id)
                logger.info(f"⏳ Settlement queued for booking {booking_id}")
            except Exception as e:
                # Booking stays pending until an operator re-queues it
                logger.error(f"❌ Failed to queue settlement for booking {booking_id}: {e}")

        notify_booking_created(booking, provider_email=provider.get("email") if provider else None)
        return booking

    def get_my_bookings(self, uid: str) -> list[dict]:
        return self.repo.get_customer_bookings(self.store, uid)

    def get_booking(self, booking_id: str, session: SessionContext) -> dict:
        booking = self.repo.get_booking(self.store, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        provider_id = (session.profile or {}).get("providerApplicationId")
        is_customer = booking.get("customerId") == session.uid
        is_provider = provider_id is not None and booking.get("providerId") == provider_id
        if not (is_customer or is_provider or session.is_admin):
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking
