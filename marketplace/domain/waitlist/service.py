"""Waitlist service - signups, referral codes and referral stats"""

import logging
import secrets
import string

from fastapi import HTTPException

from ...store import SERVER_TIMESTAMP, DocumentStore, StoreError
from .repository import WaitlistRepository
from .schemas import WaitlistSignup

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def generate_referral_code(email: str) -> str:
    """Email local part plus four random base36 characters, lower-cased"""
    username = email.split("@")[0]
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{username}{suffix}".lower()


class WaitlistService:
    def __init__(self, store: DocumentStore):
        self.store = store
        self.repo = WaitlistRepository()

    def join(self, data: WaitlistSignup) -> dict:
        """Add a signup; a referral credits the first entry holding that code"""
        logger.info(f"📥 Waitlist signup from {data.city}")
        referral_code = generate_referral_code(data.email)
        entry = {
            **data.model_dump(),
            "referralCode": referral_code,
            "referredBy": data.referredBy,
            "referralCount": 0,
            "status": "pending",
            "createdAt": SERVER_TIMESTAMP,
        }
        try:
            entry_id = self.repo.create_entry(self.store, entry)
        except StoreError as e:
            raise HTTPException(
                status_code=502, detail="Something went wrong. Please try again."
            ) from e

        if data.referredBy:
            self._credit_referrer(data.referredBy)

        logger.info(f"✅ Waitlist entry {entry_id} created")
        return {"id": entry_id, "referralCode": referral_code}

    def _credit_referrer(self, code: str) -> None:
        # Best effort: the signup itself already succeeded
        try:
            referrer = self.repo.find_by_referral_code(self.store, code)
            if not referrer:
                logger.info(f"ℹ️ Referral code {code} matched no waitlist entry")
                return
            self.repo.increment_referral_count(self.store, referrer["id"])
            logger.info(f"🎉 Referral credited to {referrer['id']}")
        except StoreError as e:
            logger.error(f"❌ Error updating referral count for {code}: {e}")

    def count(self) -> int:
        try:
            return self.repo.count(self.store)
        except StoreError as e:
            raise HTTPException(status_code=502, detail="Failed to load waitlist count") from e

    def referral_stats(self, email: str) -> dict:
        entry = self.repo.find_by_email(self.store, email)
        if not entry:
            raise HTTPException(status_code=404, detail="No waitlist signup found for this email")
        return {
            "referralCode": entry.get("referralCode"),
            "referralCount": entry.get("referralCount") or 0,
            "city": entry.get("city"),
            "signupDate": entry.get("createdAt"),
        }
