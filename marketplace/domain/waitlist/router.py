"""Waitlist router - public pre-launch signup endpoints"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ...rate_limiter import create_rate_limiter
from ...shared.validators import validate_email
from ...store import DocumentStore, get_document_store
from .schemas import ReferralStatsResponse, WaitlistCountResponse, WaitlistSignup, WaitlistSignupResponse
from .service import WaitlistService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/waitlist", tags=["Waitlist"])

rate_limit_waitlist = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="waitlist")


@router.post("", response_model=WaitlistSignupResponse, status_code=201)
async def join_waitlist(
    data: WaitlistSignup,
    store: DocumentStore = Depends(get_document_store),
    _: None = Depends(rate_limit_waitlist),
):
    result = WaitlistService(store).join(data)
    return WaitlistSignupResponse(**result)


@router.get("/count", response_model=WaitlistCountResponse)
async def waitlist_count(store: DocumentStore = Depends(get_document_store)):
    return WaitlistCountResponse(count=WaitlistService(store).count())


@router.get("/referrals", response_model=ReferralStatsResponse)
async def referral_stats(
    email: str = Query(..., description="Email used for the waitlist signup"),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        email = validate_email(email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return ReferralStatsResponse(**WaitlistService(store).referral_stats(email))
