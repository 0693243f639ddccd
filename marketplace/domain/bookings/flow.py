"""Booking wizard: service, schedule, details, payment, confirm"""

from typing import Optional

from ...catalog import get_service
from ...shared.fees import split_fee
from ...store import SERVER_TIMESTAMP
from ...wizard import WizardError, WizardFlow, WizardStep

BOOKING_FLOW_NAME = "booking"


def has_service(draft: dict) -> bool:
    return get_service(draft.get("serviceId")) is not None


def has_schedule(draft: dict) -> bool:
    return bool(draft.get("date")) and bool(draft.get("time"))


def has_details(draft: dict) -> bool:
    vehicle = draft.get("vehicle") or {}
    return any(vehicle.values()) and bool((draft.get("address") or "").strip())


def build_booking_record(
    draft: dict,
    customer: dict,
    provider: Optional[dict] = None,
    payment_intent_id: Optional[str] = None,
) -> dict:
    """
    Turn a completed booking draft into a bookings document.

    The service is snapshotted from the catalog so the price cannot be
    supplied by the client. The payment intent is issued server-side for
    that price and passed in by the caller.
    """
    service = get_service(draft.get("serviceId"))
    if service is None:
        raise WizardError("Selected service is no longer available")

    total = service["price"]
    platform_fee, provider_amount = split_fee(total)
    vehicle = draft.get("vehicle") or {}

    return {
        "customerId": customer["uid"],
        "customerEmail": customer.get("email"),
        "customerName": customer.get("name") or "Customer",
        "providerId": provider.get("id") if provider else None,
        "providerName": provider.get("businessName") if provider else None,
        "service": {k: service[k] for k in ("id", "name", "price", "duration")},
        "date": draft["date"],
        "time": draft["time"],
        "vehicle": {k: vehicle.get(k) for k in ("make", "model", "year")},
        "address": draft["address"].strip(),
        "status": "pending",
        "paymentStatus": "pending",
        "totalAmount": total,
        "platformFee": platform_fee,
        "providerAmount": provider_amount,
        "paymentIntentId": payment_intent_id,
        "paymentMethodId": draft.get("paymentMethodId"),
        "settlementAttempts": 0,
        "createdAt": SERVER_TIMESTAMP,
        "paidAt": None,
    }


BOOKING_FLOW = WizardFlow(
    name=BOOKING_FLOW_NAME,
    steps=(
        WizardStep("service", has_service),
        WizardStep("schedule", has_schedule),
        WizardStep("details", has_details),
        # Card capture happens client-side; nothing to check here
        WizardStep("payment"),
        WizardStep("confirm"),
    ),
    build_record=build_booking_record,
)
