"""
Customer and provider notifications.

No mail provider is wired up yet; messages are written to the log so the
content and recipients can be checked.
"""

import logging

logger = logging.getLogger(__name__)


def _send(to: str | None, subject: str, body: str) -> None:
    if not to:
        logger.info(f"📭 Skipping '{subject}' - no recipient")
        return
    logger.info(f"📧 To: {to} | Subject: {subject} | {body}")


def notify_booking_created(booking: dict, provider_email: str | None = None) -> None:
    _send(
        booking.get("customerEmail"),
        "Booking Confirmed - BRNNO",
        f"Your {booking['service']['name']} on {booking['date']} at {booking['time']} is booked. "
        "Payment is being processed.",
    )
    _send(
        provider_email,
        "New Booking - BRNNO",
        f"You have a new booking on {booking['date']} at {booking['time']}. "
        f"You will receive ${booking['providerAmount']} once payment settles.",
    )


def notify_payment_settled(booking: dict) -> None:
    _send(
        booking.get("customerEmail"),
        "Payment Received - BRNNO",
        f"We received your payment of ${booking.get('totalAmount')}.",
    )
    logger.info(
        f"💰 Provider {booking.get('providerId')} will receive ${booking.get('providerAmount')} in their next payout"
    )


def notify_payment_failed(booking: dict) -> None:
    _send(
        booking.get("customerEmail"),
        "Payment Problem - BRNNO",
        "We could not process your payment. Please update your payment method.",
    )


def notify_application_submitted(application: dict) -> None:
    _send(
        application.get("email"),
        "BRNNO Provider Application Submitted",
        f"Hello {application.get('ownerName')}, your provider application for "
        f"{application.get('businessName')} has been submitted. "
        "We will review your application within 2-3 business days.",
    )


def notify_application_approved(application: dict) -> None:
    _send(
        application.get("email"),
        "Welcome to BRNNO",
        f"{application.get('businessName')} is approved. You can now accept bookings.",
    )
