"""User router - sign-up, sign-in, sign-out and profile endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ...auth import open_session, require_user
from ...config import FRONTEND_URL
from ...rate_limiter import create_rate_limiter
from ...services.identity_service import FirebaseIdentityClient, IdentityError, get_identity_client
from ...session import Identity, SessionContext
from ...store import DocumentStore, StoreError, get_document_store
from .schemas import (
    AuthResponse,
    GoogleRedirectResponse,
    GoogleSignInRequest,
    LoginRequest,
    PasswordResetRequest,
    ProfileResponse,
    ProfileUpdate,
    SignupRequest,
)
from .service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
users_router = APIRouter(prefix="/users", tags=["Users"])

GOOGLE_SESSION_COOKIE = "google_auth_session"

rate_limit_auth = create_rate_limiter(limit=10, window_seconds=60, key_prefix="auth")
rate_limit_password_reset = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="password_reset")


def _auth_response(identity: Identity, profile: Optional[dict]) -> AuthResponse:
    return AuthResponse(
        uid=identity.uid,
        email=identity.email,
        idToken=identity.id_token,
        refreshToken=identity.refresh_token,
        isNewUser=identity.is_new_user,
        profile=ProfileResponse(**profile) if profile else None,
    )


def _identity_http_error(e: IdentityError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/signup", response_model=AuthResponse)
async def signup(
    data: SignupRequest,
    identity_client: FirebaseIdentityClient = Depends(get_identity_client),
    store: DocumentStore = Depends(get_document_store),
    _: None = Depends(rate_limit_auth),
):
    """Create an email/password identity and its profile"""
    try:
        identity = await identity_client.sign_up(data.email, data.password)
    except IdentityError as e:
        logger.error(f"❌ Signup failed for {data.email}: {e.code}")
        raise _identity_http_error(e) from e

    try:
        profile = ProfileService(store).create_signup_profile(identity, data)
    except StoreError as e:
        logger.error(f"❌ Failed to create profile for {identity.uid}: {e}")
        raise HTTPException(status_code=502, detail="Something went wrong. Please try again.") from e

    return _auth_response(identity, profile)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    identity_client: FirebaseIdentityClient = Depends(get_identity_client),
    store: DocumentStore = Depends(get_document_store),
    _: None = Depends(rate_limit_auth),
):
    try:
        identity = await identity_client.sign_in(data.email, data.password)
    except IdentityError as e:
        logger.warning(f"⚠️ Login failed for {data.email}: {e.code}")
        raise _identity_http_error(e) from e

    try:
        session = open_session(identity, store)
    except StoreError as e:
        logger.error(f"❌ Failed to load profile for {identity.uid}: {e}")
        raise HTTPException(status_code=502, detail="Failed to load user data.") from e
    return _auth_response(identity, session.profile)


@router.post("/google", response_model=AuthResponse | GoogleRedirectResponse)
async def google_sign_in(
    data: GoogleSignInRequest,
    response: Response,
    identity_client: FirebaseIdentityClient = Depends(get_identity_client),
    store: DocumentStore = Depends(get_document_store),
):
    """
    Sign in with a Google credential from the popup flow.
    When the popup was blocked (no credential) or the credential is rejected,
    answer with a redirect URL instead.
    """
    try:
        identity = await identity_client.sign_in_with_google(
            id_token=data.idToken, access_token=data.accessToken
        )
    except IdentityError as e:
        if not e.needs_redirect:
            raise _identity_http_error(e) from e
        logger.info("↪️ Google popup flow unavailable, falling back to redirect")
        try:
            redirect = await identity_client.create_google_redirect(
                f"{FRONTEND_URL}/auth/google/callback"
            )
        except IdentityError as redirect_error:
            logger.error(f"❌ Google redirect setup failed: {redirect_error.code}")
            raise _identity_http_error(redirect_error) from redirect_error
        response.set_cookie(
            key=GOOGLE_SESSION_COOKIE,
            value=redirect["sessionId"] or "",
            httponly=True,
            secure=True,
            samesite="lax",
            max_age=600,
        )
        return GoogleRedirectResponse(redirectUrl=redirect["authUri"] or "")

    try:
        session = open_session(identity, store, defaults={"accountType": data.accountType})
    except StoreError as e:
        logger.error(f"❌ Failed to load profile for {identity.uid}: {e}")
        raise HTTPException(status_code=502, detail="Failed to load user data.") from e
    return _auth_response(identity, session.profile)


@router.get("/google/callback", response_model=AuthResponse)
async def google_redirect_callback(
    request: Request,
    identity_client: FirebaseIdentityClient = Depends(get_identity_client),
    store: DocumentStore = Depends(get_document_store),
):
    """Finish the redirect flow; the IdP appends its response to this URL"""
    session_id = request.cookies.get(GOOGLE_SESSION_COOKIE)
    if not session_id:
        raise HTTPException(status_code=400, detail="Google sign-in session expired. Please try again.")
    try:
        identity = await identity_client.complete_google_redirect(str(request.url), session_id)
    except IdentityError as e:
        logger.error(f"❌ Google redirect sign-in failed: {e.code}")
        raise _identity_http_error(e) from e

    try:
        session = open_session(identity, store)
    except StoreError as e:
        logger.error(f"❌ Failed to load profile for {identity.uid}: {e}")
        raise HTTPException(status_code=502, detail="Failed to load user data.") from e
    return _auth_response(identity, session.profile)


@router.post("/password-reset")
async def send_password_reset(
    data: PasswordResetRequest,
    identity_client: FirebaseIdentityClient = Depends(get_identity_client),
    _: None = Depends(rate_limit_password_reset),
):
    try:
        await identity_client.send_password_reset(data.email, continue_url=f"{FRONTEND_URL}/app.html")
    except IdentityError as e:
        raise _identity_http_error(e) from e
    return {"message": "Password reset email sent. Check your inbox."}


@router.post("/logout")
async def logout(
    session: SessionContext = Depends(require_user),
    identity_client: FirebaseIdentityClient = Depends(get_identity_client),
):
    try:
        await identity_client.sign_out(session.uid)
    except IdentityError as e:
        raise _identity_http_error(e) from e
    session.sign_out()
    return {"message": "Signed out"}


@users_router.get("/me", response_model=ProfileResponse)
async def get_my_profile(session: SessionContext = Depends(require_user)):
    return ProfileResponse(**session.profile)


@users_router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    session: SessionContext = Depends(require_user),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        profile = ProfileService(store).update_profile(session.uid, data)
    except StoreError as e:
        logger.error(f"❌ Error saving profile for {session.uid}: {e}")
        raise HTTPException(status_code=502, detail="Failed to save profile. Please try again.") from e
    return ProfileResponse(**profile)
