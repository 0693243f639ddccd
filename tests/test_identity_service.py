import json

import httpx
import pytest

from marketplace.services.identity_service import FirebaseIdentityClient, IdentityError


def _client(handler):
    return FirebaseIdentityClient(api_key="web-key", transport=httpx.MockTransport(handler))


async def test_sign_in_returns_identity():
    captured = {}

    def handler(request: httpx.Request):
        captured["path"] = request.url.path
        captured["key"] = request.url.params["key"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "localId": "uid-1", "email": "jane@example.com", "idToken": "id-tok", "refreshToken": "ref-tok",
        })

    identity = await _client(handler).sign_in("jane@example.com", "secret1")

    assert captured["path"] == "/v1/accounts:signInWithPassword"
    assert captured["key"] == "web-key"
    assert captured["body"]["returnSecureToken"] is True
    assert identity.uid == "uid-1"
    assert identity.id_token == "id-tok"
    assert identity.is_new_user is False


async def test_sign_up_marks_new_user():
    client = _client(lambda r: httpx.Response(200, json={"localId": "uid-2", "email": "new@example.com"}))
    identity = await client.sign_up("new@example.com", "secret1")
    assert identity.is_new_user is True


async def test_error_code_is_parsed_from_message():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "WEAK_PASSWORD : Password should be at least 6 characters"}})

    with pytest.raises(IdentityError) as exc_info:
        await _client(handler).sign_up("a@example.com", "123")

    assert exc_info.value.code == "WEAK_PASSWORD"
    assert exc_info.value.message == "Password must be at least 6 characters."
    assert exc_info.value.status_code == 400


async def test_google_without_credential_needs_redirect():
    with pytest.raises(IdentityError) as exc_info:
        await _client(lambda r: httpx.Response(200, json={})).sign_in_with_google()
    assert exc_info.value.needs_redirect


async def test_google_redirect_uri():
    client = _client(lambda r: httpx.Response(200, json={"authUri": "https://accounts.google.com/o", "sessionId": "s1"}))
    redirect = await client.create_google_redirect("http://localhost:8080/auth/google/callback")
    assert redirect == {"authUri": "https://accounts.google.com/o", "sessionId": "s1"}


async def test_unconfigured_client():
    with pytest.raises(IdentityError) as exc_info:
        await FirebaseIdentityClient(api_key=None).sign_in("a@example.com", "secret1")
    assert exc_info.value.status_code == 500
