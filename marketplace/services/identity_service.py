"""
Identity Service
Email/password and Google sign-in through the Firebase Identity Toolkit REST API,
sign-out through the Firebase Admin SDK
"""
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from ..config import FIREBASE_API_KEY, FRONTEND_URL
from ..session import Identity

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"

# Firebase REST error codes mapped to messages safe to show users
FRIENDLY_ERRORS = {
    "EMAIL_EXISTS": "This email is already registered. Please sign in instead.",
    "EMAIL_NOT_FOUND": "Invalid email or password.",
    "INVALID_PASSWORD": "Invalid email or password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "WEAK_PASSWORD": "Password must be at least 6 characters.",
    "INVALID_EMAIL": "Please enter a valid email address.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "INVALID_IDP_RESPONSE": "Google sign-in failed. Please try again.",
}

# IdP failures where the client should fall back to the redirect flow
REDIRECT_FALLBACK_ERRORS = {"INVALID_IDP_RESPONSE", "MISSING_OR_INVALID_NONCE", "OPERATION_NOT_ALLOWED"}


class IdentityError(Exception):
    """Identity provider rejected or failed a call"""

    def __init__(self, code: str, message: Optional[str] = None, status_code: int = 400):
        super().__init__(message or code)
        self.code = code
        self.message = message or FRIENDLY_ERRORS.get(code, "Authentication failed. Please try again.")
        self.status_code = status_code

    @property
    def needs_redirect(self) -> bool:
        return self.code in REDIRECT_FALLBACK_ERRORS


class FirebaseIdentityClient:
    """Calls the identity provider; every method returns plain data or raises IdentityError"""

    def __init__(
        self,
        api_key: Optional[str] = FIREBASE_API_KEY,
        base_url: str = IDENTITY_TOOLKIT_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout
        if not self.api_key:
            logger.warning("FIREBASE_API_KEY not set; sign-in endpoints will fail until configured")

    async def _post(self, method: str, payload: dict) -> dict:
        if not self.api_key:
            raise IdentityError("NOT_CONFIGURED", "Authentication is not configured", status_code=500)

        url = f"{self.base_url}/accounts:{method}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Identity provider unreachable ({method}): {e}")
            raise IdentityError("UNAVAILABLE", "Authentication service unavailable", status_code=502) from e

        if response.status_code >= 400:
            try:
                raw = response.json().get("error", {}).get("message", "UNKNOWN")
            except ValueError:
                raw = "UNKNOWN"
            # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
            code = raw.split(" ")[0].strip()
            logger.warning(f"⚠️ Identity provider error on {method}: {code}")
            raise IdentityError(code)

        return response.json()

    @staticmethod
    def _identity(data: dict, provider: str = "password") -> Identity:
        return Identity(
            uid=data["localId"],
            email=data.get("email"),
            display_name=data.get("displayName") or data.get("fullName"),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
            provider=provider,
            is_new_user=bool(data.get("isNewUser")),
        )

    async def sign_up(self, email: str, password: str) -> Identity:
        data = await self._post(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        logger.info(f"🆕 Identity created for {email}")
        identity = self._identity(data)
        identity.is_new_user = True
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        data = await self._post(
            "signInWithPassword", {"email": email, "password": password, "returnSecureToken": True}
        )
        logger.info(f"🔑 Signed in {email}")
        return self._identity(data)

    async def sign_in_with_google(
        self,
        id_token: Optional[str] = None,
        access_token: Optional[str] = None,
        request_uri: str = FRONTEND_URL,
    ) -> Identity:
        """Exchange a Google credential captured by the client's popup flow"""
        if not id_token and not access_token:
            raise IdentityError("INVALID_IDP_RESPONSE")
        credential = {"providerId": "google.com"}
        if id_token:
            credential["id_token"] = id_token
        if access_token:
            credential["access_token"] = access_token
        data = await self._post(
            "signInWithIdp",
            {
                "postBody": urlencode(credential),
                "requestUri": request_uri,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return self._identity(data, provider="google.com")

    async def create_google_redirect(self, continue_uri: str) -> dict:
        """Start the redirect flow used when the popup flow is blocked"""
        data = await self._post(
            "createAuthUri", {"providerId": "google.com", "continueUri": continue_uri}
        )
        return {"authUri": data.get("authUri"), "sessionId": data.get("sessionId")}

    async def complete_google_redirect(self, request_uri: str, session_id: str) -> Identity:
        data = await self._post(
            "signInWithIdp",
            {
                "requestUri": request_uri,
                "sessionId": session_id,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return self._identity(data, provider="google.com")

    async def send_password_reset(self, email: str, continue_url: Optional[str] = None) -> None:
        payload = {"requestType": "PASSWORD_RESET", "email": email}
        if continue_url:
            payload["continueUrl"] = continue_url
        await self._post("sendOobCode", payload)
        logger.info(f"📧 Password reset email requested for {email}")

    async def sign_out(self, uid: str) -> None:
        """Revoke refresh tokens so every device is signed out"""
        from firebase_admin import auth as firebase_auth
        from firebase_admin.exceptions import FirebaseError

        from ..firebase_app import get_firebase_app

        try:
            firebase_auth.revoke_refresh_tokens(uid, app=get_firebase_app())
            logger.info(f"👋 Revoked refresh tokens for {uid}")
        except FirebaseError as e:
            logger.error(f"❌ Failed to revoke tokens for {uid}: {e}")
            raise IdentityError("SIGN_OUT_FAILED", "Failed to sign out. Please try again.", 502) from e


def get_identity_client() -> FirebaseIdentityClient:
    """FastAPI dependency"""
    return FirebaseIdentityClient()
