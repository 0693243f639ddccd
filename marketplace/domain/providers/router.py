"""Provider router - public listing, application wizard and provider dashboard"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...auth import require_provider, require_user
from ...catalog import BUSINESS_TYPES, PROVIDER_SERVICE_OPTIONS, YEARS_EXPERIENCE_OPTIONS
from ...services.location_service import GooglePlacesClient, get_location_client
from ...session import SessionContext
from ...store import DocumentStore, get_document_store, utcnow
from ...wizard_store import WizardSessionStore, get_wizard_store
from .schemas import (
    ProviderApplicationSubmitResponse,
    ProviderDashboardResponse,
    ProviderDraftUpdate,
    ProviderListing,
    ProviderWizardStateResponse,
)
from .service import ProviderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])


def get_provider_service(
    store: DocumentStore = Depends(get_document_store),
    wizards: WizardSessionStore = Depends(get_wizard_store),
    location: GooglePlacesClient = Depends(get_location_client),
) -> ProviderService:
    return ProviderService(store, wizards, location)


@router.get("", response_model=list[ProviderListing])
async def list_providers(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radiusKm: Optional[float] = Query(None, gt=0, le=500),
    service: ProviderService = Depends(get_provider_service),
):
    """Approved providers; with lat/lng they are sorted by distance, radiusKm filters them"""
    return service.list_approved(lat, lng, radiusKm)


@router.get("/application/options")
async def get_application_options():
    return {
        "services": PROVIDER_SERVICE_OPTIONS,
        "businessTypes": list(BUSINESS_TYPES),
        "yearsExperience": list(YEARS_EXPERIENCE_OPTIONS),
    }


@router.get("/application", response_model=ProviderWizardStateResponse)
async def get_application_wizard(
    session: SessionContext = Depends(require_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.get_wizard(session.uid)


@router.patch("/application", response_model=ProviderWizardStateResponse)
async def update_application_wizard(
    data: ProviderDraftUpdate,
    session: SessionContext = Depends(require_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.update_wizard(session.uid, data)


@router.post("/application/advance", response_model=ProviderWizardStateResponse)
async def advance_application_wizard(
    session: SessionContext = Depends(require_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.advance(session.uid)


@router.post("/application/retreat", response_model=ProviderWizardStateResponse)
async def retreat_application_wizard(
    session: SessionContext = Depends(require_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.retreat(session.uid)


@router.post("/application/reset", response_model=ProviderWizardStateResponse)
async def reset_application_wizard(
    session: SessionContext = Depends(require_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.reset(session.uid)


@router.post("/application/submit", response_model=ProviderApplicationSubmitResponse, status_code=201)
async def submit_application(
    session: SessionContext = Depends(require_user),
    service: ProviderService = Depends(get_provider_service),
):
    application = await service.submit(session)
    return ProviderApplicationSubmitResponse(id=application["id"], status=application["status"])


@router.get("/dashboard", response_model=ProviderDashboardResponse)
async def provider_dashboard(
    session: SessionContext = Depends(require_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return service.dashboard(session, utcnow())
