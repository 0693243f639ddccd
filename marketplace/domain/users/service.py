"""Profile service - user profile documents keyed by identity uid"""

import logging
from typing import Optional

from fastapi import HTTPException

from ...collections import COLLECTION_USERS
from ...session import Identity, SessionContext
from ...store import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)


class ProfileService:
    """Service layer for user profiles"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def get_profile(self, uid: str) -> Optional[dict]:
        return self.store.get(COLLECTION_USERS, uid)

    def ensure_profile(self, identity: Identity, defaults: Optional[dict] = None) -> dict:
        """Return the profile for an identity, creating a customer profile on first sign-in"""
        profile = self.get_profile(identity.uid)
        if profile:
            return profile

        logger.info(f"🆕 Creating profile for {identity.email or identity.uid}")
        data = {
            "uid": identity.uid,
            "email": identity.email,
            "displayName": identity.display_name or "",
            "accountType": "customer",
            "role": "user",
            "createdAt": SERVER_TIMESTAMP,
        }
        data.update(defaults or {})
        self.store.set(COLLECTION_USERS, identity.uid, data)
        return self.get_profile(identity.uid)

    def on_session_change(self, session: SessionContext, defaults: Optional[dict] = None):
        """Session observer: load (or create) the profile whenever someone signs in"""
        if session.identity is None:
            return
        session.profile = self.ensure_profile(session.identity, defaults)

    def create_signup_profile(self, identity: Identity, data) -> dict:
        self.store.set(
            COLLECTION_USERS,
            identity.uid,
            {
                "uid": identity.uid,
                "email": identity.email or data.email,
                "firstName": data.firstName,
                "lastName": data.lastName,
                "displayName": f"{data.firstName} {data.lastName}",
                "phone": data.phone,
                "businessName": data.businessName if data.accountType == "provider" else None,
                "accountType": data.accountType,
                "role": "user",
                "createdAt": SERVER_TIMESTAMP,
            },
        )
        logger.info(f"✅ Profile created for {identity.uid} ({data.accountType})")
        return self.get_profile(identity.uid)

    def update_profile(self, uid: str, data) -> dict:
        profile = self.get_profile(uid)
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")

        updates = data.model_dump(exclude_none=True)
        if not updates:
            return profile

        first_name = updates.get("firstName", profile.get("firstName") or "")
        last_name = updates.get("lastName", profile.get("lastName") or "")
        updates["displayName"] = f"{first_name} {last_name}".strip()
        updates["updatedAt"] = SERVER_TIMESTAMP
        self.store.update(COLLECTION_USERS, uid, updates)
        return self.get_profile(uid)

    def attach_provider_application(self, uid: str, application_id: str, business_name: str):
        self.store.update(
            COLLECTION_USERS,
            uid,
            {"providerApplicationId": application_id, "businessName": business_name},
        )

    def promote_to_provider(self, uid: str):
        self.store.update(
            COLLECTION_USERS, uid, {"accountType": "provider", "updatedAt": SERVER_TIMESTAMP}
        )
        logger.info(f"🔧 User {uid} promoted to provider")
