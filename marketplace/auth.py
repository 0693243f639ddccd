import base64
import json
import logging
import time
from typing import Optional

import httpx
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import FIREBASE_PROJECT_ID
from .domain.users.service import ProfileService
from .session import Identity, SessionContext
from .store import DocumentStore, StoreError, get_document_store

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys(force_refresh: bool = False):
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_CERTS_URL)
            if response.status_code == 200:
                _cached_keys = response.json()
                logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
                return _cached_keys
            logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except Exception as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode(segment: str) -> bytes:
    padding_needed = 4 - len(segment) % 4
    if padding_needed != 4:
        segment += "=" * padding_needed
    return base64.urlsafe_b64decode(segment)


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token: RS256 signature against Google's certificates,
    then audience, issuer and time claims.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Firebase not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
        payload = json.loads(_b64decode(payload_b64))
        signature = _b64decode(signature_b64)
    except Exception as e:
        logger.error(f"❌ Failed to decode token: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256" or not kid:
        raise HTTPException(status_code=401, detail="Invalid token header")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, refreshing")
        public_keys = await get_google_public_keys(force_refresh=True)
        if not public_keys or kid not in public_keys:
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    try:
        cert = load_pem_x509_certificate(public_keys[kid].encode(), default_backend())
        cert.public_key().verify(
            signature, f"{header_b64}.{payload_b64}".encode(), padding.PKCS1v15(), hashes.SHA256()
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    if payload.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid token audience")
    if payload.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if payload.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )
    # Allow 60 seconds clock skew
    if payload.get("iat", 0) > now + 60:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return payload


def open_session(identity: Identity, store: DocumentStore, defaults: Optional[dict] = None) -> SessionContext:
    """Build a session whose profile is created on first sign-in if absent"""
    profiles = ProfileService(store)
    session = SessionContext()
    session.observe(lambda s: profiles.on_session_change(s, defaults))
    session.sign_in(identity)
    return session


async def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    store: DocumentStore = Depends(get_document_store),
) -> SessionContext:
    """Session for the bearer token, or an anonymous session when none is sent"""
    if not credentials:
        return SessionContext()

    token = credentials.credentials
    decoded = await verify_firebase_token(token)
    identity = Identity(
        uid=decoded["sub"],
        email=decoded.get("email"),
        display_name=decoded.get("name"),
        id_token=token,
        provider=(decoded.get("firebase") or {}).get("sign_in_provider", "password"),
    )
    try:
        return open_session(identity, store)
    except StoreError as e:
        logger.error(f"❌ Failed to load profile for {identity.uid}: {e}")
        raise HTTPException(status_code=502, detail="Failed to load your profile. Please try again.") from e


async def require_user(session: SessionContext = Depends(get_session)) -> SessionContext:
    if not session.is_authenticated:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )
    return session


async def require_admin(session: SessionContext = Depends(require_user)) -> SessionContext:
    if not session.is_admin:
        logger.warning(f"⚠️ Non-admin {session.uid} attempted to access admin route")
        raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")
    return session


async def require_provider(session: SessionContext = Depends(require_user)) -> SessionContext:
    if not session.is_provider:
        logger.warning(f"⚠️ Non-provider {session.uid} attempted to access provider dashboard")
        raise HTTPException(
            status_code=403, detail="Provider access required. Please sign up as a provider first."
        )
    return session
