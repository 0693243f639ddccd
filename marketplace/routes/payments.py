"""Payment routes - card payment methods and booking payment intents"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..auth import require_user
from ..catalog import get_service
from ..services.payment_service import PaymentError, StripePaymentClient, get_payment_client
from ..session import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


class BillingDetails(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class PaymentMethodRequest(BaseModel):
    cardToken: str
    billingDetails: BillingDetails = BillingDetails()


class PaymentIntentRequest(BaseModel):
    serviceId: int
    providerId: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    id: str
    amount: int
    currency: str
    status: str
    clientSecret: Optional[str] = None
    metadata: dict[str, Any] = {}


@router.post("/methods")
async def create_payment_method(
    data: PaymentMethodRequest,
    session: SessionContext = Depends(require_user),
    payments: StripePaymentClient = Depends(get_payment_client),
):
    try:
        method = await payments.create_payment_method(
            data.cardToken, data.billingDetails.model_dump(exclude_none=True)
        )
    except PaymentError as e:
        logger.error(f"❌ Error creating payment method for {session.uid}: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return {"id": method["id"], "type": method.get("type", "card")}


@router.post("/intents", response_model=PaymentIntentResponse)
async def create_payment_intent(
    data: PaymentIntentRequest,
    session: SessionContext = Depends(require_user),
    payments: StripePaymentClient = Depends(get_payment_client),
):
    """Intent for a catalog service; the amount always comes from the catalog"""
    service = get_service(data.serviceId)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    try:
        intent = await payments.create_payment_intent(
            service["price"],
            metadata={"customerId": session.uid, "serviceId": service["id"], "providerId": data.providerId},
        )
    except PaymentError as e:
        logger.error(f"❌ Error creating payment intent for {session.uid}: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    return PaymentIntentResponse(
        id=intent["id"],
        amount=intent["amount"],
        currency=intent["currency"],
        status=intent["status"],
        clientSecret=intent.get("client_secret"),
        metadata=intent.get("metadata") or {},
    )
