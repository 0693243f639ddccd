"""Provider service - application wizard, approval, public listing and dashboard"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException

from ...analytics import provider_dashboard_stats
from ...cache import APPROVED_PROVIDERS_KEY, cache, invalidate_approved_providers
from ...notifications import notify_application_approved, notify_application_submitted
from ...services.location_service import GooglePlacesClient, LocationError, distance_km, find_providers_in_radius
from ...session import SessionContext
from ...store import SERVER_TIMESTAMP, DocumentStore, StoreError
from ...wizard import SubmissionFailed, WizardError
from ...wizard_store import WizardSessionStore
from ..bookings.repository import BookingRepository
from ..users.service import ProfileService
from .flow import PROVIDER_FLOW
from .repository import ProviderRepository
from .schemas import ProviderDraftUpdate

logger = logging.getLogger(__name__)

LISTING_CACHE_SECONDS = 300


def to_listing(application: dict) -> dict:
    """Public card for an approved provider application"""
    business_name = application.get("businessName") or "Unknown Business"
    return {
        "id": application["id"],
        "name": business_name,
        "rating": 4.8,
        "reviews": 0,
        "tags": application.get("services") or [],
        "description": f"Professional mobile detailing service by {business_name}",
        "startingPrice": 120,
        "certified": bool(application.get("backgroundCheck")),
        "serviceArea": application.get("serviceArea") or "Local Area",
        "phone": application.get("phone") or "",
        "email": application.get("email") or "",
        "coordinates": application.get("coordinates"),
    }


class ProviderService:
    """Service layer for provider applications"""

    def __init__(
        self,
        store: DocumentStore,
        wizards: Optional[WizardSessionStore] = None,
        location: Optional[GooglePlacesClient] = None,
    ):
        self.store = store
        self.wizards = wizards
        self.location = location
        self.repo = ProviderRepository()
        self.profiles = ProfileService(store)

    # Application wizard

    def get_wizard(self, uid: str) -> dict:
        return self.wizards.load(PROVIDER_FLOW, uid).snapshot()

    def update_wizard(self, uid: str, data: ProviderDraftUpdate) -> dict:
        return self.wizards.update(PROVIDER_FLOW, uid, data.draft_fields())

    def advance(self, uid: str) -> dict:
        return self.wizards.advance(PROVIDER_FLOW, uid)

    def retreat(self, uid: str) -> dict:
        return self.wizards.retreat(PROVIDER_FLOW, uid)

    def reset(self, uid: str) -> dict:
        return self.wizards.reset(PROVIDER_FLOW, uid)

    async def _service_area_coordinates(self, service_area: Optional[str]) -> Optional[dict]:
        if not service_area or self.location is None or not self.location.api_key:
            return None
        try:
            result = await self.location.geocode(service_area)
            return {"lat": result["lat"], "lng": result["lng"]}
        except LocationError as e:
            logger.warning(f"⚠️ Could not geocode service area '{service_area}': {e.message}")
            return None

    def _persist_application(self, uid: str, record: dict) -> str:
        application_id = self.repo.create_application(self.store, record)
        try:
            self.profiles.attach_provider_application(uid, application_id, record["businessName"])
        except StoreError:
            self.repo.delete_application(self.store, application_id)
            raise
        return application_id

    async def submit(self, session: SessionContext) -> dict:
        uid = session.uid
        existing_id = (session.profile or {}).get("providerApplicationId")
        if existing_id and self.repo.get_application(self.store, existing_id):
            raise HTTPException(status_code=409, detail="You have already submitted a provider application.")

        wizard = self.wizards.load(PROVIDER_FLOW, uid)
        coordinates = None
        if wizard.is_terminal:
            coordinates = await self._service_area_coordinates(wizard.draft.get("serviceArea"))

        try:
            application_id = wizard.submit(
                lambda record: self._persist_application(uid, record),
                user_id=uid,
                email=session.identity.email,
                coordinates=coordinates,
            )
        except WizardError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except SubmissionFailed as e:
            logger.error(f"❌ Error submitting provider application for {uid}: {e.__cause__}")
            raise HTTPException(status_code=502, detail=e.message) from e

        self.wizards.clear(PROVIDER_FLOW, uid)
        application = self.repo.get_application(self.store, application_id)
        logger.info(f"✅ Provider application {application_id} submitted by {uid}")
        notify_application_submitted(application)
        return application

    # Admin

    def approve(self, application_id: str) -> dict:
        application = self.repo.get_application(self.store, application_id)
        if not application:
            raise HTTPException(status_code=404, detail="Provider application not found")
        if application.get("status") == "approved":
            return application

        self.repo.update_application(
            self.store, application_id, {"status": "approved", "approvedAt": SERVER_TIMESTAMP}
        )
        if application.get("userId"):
            self.profiles.promote_to_provider(application["userId"])
        invalidate_approved_providers()

        application = self.repo.get_application(self.store, application_id)
        logger.info(f"✅ Provider application {application_id} approved")
        notify_application_approved(application)
        return application

    # Public listing

    def list_approved(
        self, lat: Optional[float] = None, lng: Optional[float] = None, radius_km: Optional[float] = None
    ) -> list[dict]:
        listings = cache.remember(
            APPROVED_PROVIDERS_KEY,
            LISTING_CACHE_SECONDS,
            lambda: [to_listing(a) for a in self.repo.get_approved(self.store)],
        )

        if lat is None or lng is None:
            return listings

        center = {"lat": lat, "lng": lng}
        if radius_km is not None:
            listings = find_providers_in_radius(listings, center, radius_km)
        for listing in listings:
            coordinates = listing.get("coordinates")
            if coordinates and coordinates.get("lat") is not None and coordinates.get("lng") is not None:
                listing["distanceKm"] = round(distance_km(center, coordinates), 1)
        return sorted(listings, key=lambda p: (p.get("distanceKm") is None, p.get("distanceKm") or 0))

    # Provider dashboard

    def dashboard(self, session: SessionContext, now: datetime) -> dict:
        application_id = (session.profile or {}).get("providerApplicationId")
        application = self.repo.get_application(self.store, application_id) if application_id else None
        if not application:
            raise HTTPException(status_code=404, detail="Provider application not found")

        bookings = BookingRepository.get_provider_bookings(self.store, application_id)
        stats = provider_dashboard_stats(bookings, now)
        return {
            "providerId": application_id,
            "businessName": application.get("businessName"),
            "status": application.get("status"),
            **stats,
        }
