"""
Payment Service
Stripe payment methods and intents over the Stripe REST API.

Card details never reach this server: the client tokenizes the card and
sends the token. Without STRIPE_SECRET_KEY every call is simulated, so
bookings can be made in development.
"""
import logging
import secrets
import string
from typing import Any, Optional

import httpx

from ..config import PAYMENT_CURRENCY, STRIPE_API_URL, STRIPE_SECRET_KEY
from ..shared.fees import split_fee

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class PaymentError(Exception):
    """Payment processor rejected or failed a call"""

    def __init__(self, message: str, code: Optional[str] = None, status_code: int = 402):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


def _simulated_id(prefix: str) -> str:
    return prefix + "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))


def _form_fields(data: dict, prefix: str = "") -> dict:
    """Flatten nested dicts to Stripe's bracketed form keys (metadata[bookingId]=...)"""
    fields = {}
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else key
        if value is None:
            continue
        if isinstance(value, dict):
            fields.update(_form_fields(value, name))
        elif isinstance(value, bool):
            fields[name] = "true" if value else "false"
        else:
            fields[name] = str(value)
    return fields


class StripePaymentClient:
    def __init__(
        self,
        secret_key: Optional[str] = STRIPE_SECRET_KEY,
        base_url: str = STRIPE_API_URL,
        currency: str = PAYMENT_CURRENCY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.currency = currency
        self.transport = transport
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    async def _request(self, method: str, path: str, data: Optional[dict] = None) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}/{path}",
                    data=_form_fields(data) if data is not None else None,
                    headers={"Authorization": f"Bearer {self.secret_key}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Stripe unreachable ({path}): {e}")
            raise PaymentError("Payment service unavailable", status_code=502) from e

        if response.status_code >= 400:
            try:
                error = response.json().get("error", {})
            except ValueError:
                error = {}
            message = error.get("message") or "Payment failed. Please try again."
            logger.warning(f"⚠️ Stripe error on {path}: {error.get('code')} - {message}")
            raise PaymentError(
                message,
                code=error.get("code"),
                status_code=402 if response.status_code == 402 else 502,
            )

        return response.json()

    async def create_payment_method(self, card_token: str, billing_details: Optional[dict] = None) -> dict:
        """Create a card payment method from a client-side card token"""
        if not card_token:
            raise PaymentError("Card details are required", code="missing_card", status_code=400)

        if not self.is_configured:
            payment_method = {"id": _simulated_id("pm_"), "type": "card", "simulated": True}
            logger.info(f"🧪 Simulated payment method {payment_method['id']}")
            return payment_method

        return await self._request(
            "POST",
            "payment_methods",
            {"type": "card", "card": {"token": card_token}, "billing_details": billing_details or {}},
        )

    async def create_payment_intent(
        self, amount: int | float, metadata: Optional[dict[str, Any]] = None
    ) -> dict:
        """
        Create an intent for a booking total (dollars).
        Metadata carries the fee split so payouts can be reconciled later.
        """
        platform_fee, provider_amount = split_fee(amount)
        metadata = {**(metadata or {}), "platformFee": platform_fee, "providerAmount": provider_amount}
        amount_cents = int(round(float(amount) * 100))

        if not self.is_configured:
            intent = {
                "id": _simulated_id("pi_"),
                "amount": amount_cents,
                "currency": self.currency,
                "status": "requires_payment_method",
                "metadata": metadata,
                "simulated": True,
            }
            logger.info(f"🧪 Simulated payment intent {intent['id']} for ${amount}")
            return intent

        intent = await self._request(
            "POST",
            "payment_intents",
            {
                "amount": amount_cents,
                "currency": self.currency,
                "payment_method_types": {"0": "card"},
                "metadata": metadata,
            },
        )
        logger.info(f"💳 Created payment intent {intent.get('id')} for ${amount}")
        return intent

    async def retrieve_payment_intent(self, intent_id: str) -> dict:
        if not self.is_configured:
            return {"id": intent_id, "status": "requires_confirmation", "simulated": True}
        return await self._request("GET", f"payment_intents/{intent_id}")

    async def confirm_payment(self, intent_id: str, payment_method_id: str) -> dict:
        """
        Confirm an intent with a payment method.

        Returns the intent when it succeeded or is still "processing" (funds
        not settled yet); any other status raises PaymentError.
        """
        if not self.is_configured:
            logger.info(f"🧪 Simulated confirmation of {intent_id}")
            return {"id": intent_id, "status": "succeeded", "payment_method": payment_method_id, "simulated": True}

        intent = await self._request(
            "POST", f"payment_intents/{intent_id}/confirm", {"payment_method": payment_method_id}
        )
        status = intent.get("status")
        if status not in ("succeeded", "processing"):
            raise PaymentError(f"Payment not completed (status: {status})", code=status)
        logger.info(f"✅ Payment intent {intent_id} confirmed ({status})")
        return intent


def get_payment_client() -> StripePaymentClient:
    return StripePaymentClient()
