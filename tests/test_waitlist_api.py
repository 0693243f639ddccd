from marketplace.collections import COLLECTION_WAITLIST
from marketplace.domain.waitlist.service import generate_referral_code


def _signup(**overrides):
    return {
        "name": "Jane Doe",
        "email": "Jane@Example.com",
        "phone": "(801) 555-1234",
        "city": "Provo",
        "zipCode": "84601",
        "vehicleType": "suv",
        "servicesInterested": ["Full Detail", "Full Detail", "Ceramic Coating"],
        "howSoon": "asap",
        **overrides,
    }


def test_generate_referral_code():
    code = generate_referral_code("Jane.Doe@example.com")
    assert code.startswith("jane.doe")
    assert len(code) == len("jane.doe") + 4
    assert code == code.lower()


def test_join_waitlist(client, store):
    response = client.post("/waitlist", json=_signup())

    assert response.status_code == 201
    body = response.json()
    assert body["referralCode"].startswith("jane")

    entry = store.get(COLLECTION_WAITLIST, body["id"])
    assert entry["email"] == "jane@example.com"
    assert entry["phone"] == "+18015551234"
    assert entry["servicesInterested"] == ["Full Detail", "Ceramic Coating"]
    assert entry["referralCount"] == 0
    assert entry["status"] == "pending"
    assert entry["createdAt"] is not None


def test_referral_credits_referrer(client, store):
    referrer = client.post("/waitlist", json=_signup()).json()

    response = client.post(
        "/waitlist",
        json=_signup(name="Sam", email="sam@example.com", referredBy=referrer["referralCode"].upper()),
    )

    assert response.status_code == 201
    assert store.get(COLLECTION_WAITLIST, referrer["id"])["referralCount"] == 1

    stats = client.get("/waitlist/referrals", params={"email": "jane@example.com"}).json()
    assert stats["referralCode"] == referrer["referralCode"]
    assert stats["referralCount"] == 1
    assert stats["city"] == "Provo"


def test_unknown_referral_code_still_joins(client):
    response = client.post("/waitlist", json=_signup(referredBy="nobody1234"))
    assert response.status_code == 201


def test_invalid_signup_rejected(client):
    assert client.post("/waitlist", json=_signup(email="not-an-email")).status_code == 422
    assert client.post("/waitlist", json=_signup(city="  ")).status_code == 422
    assert client.post("/waitlist", json=_signup(vehicleType="boat")).status_code == 422


def test_waitlist_count(client):
    client.post("/waitlist", json=_signup())
    client.post("/waitlist", json=_signup(email="sam@example.com"))
    assert client.get("/waitlist/count").json() == {"count": 2}


def test_referral_stats_not_found(client):
    assert client.get("/waitlist/referrals", params={"email": "ghost@example.com"}).status_code == 404
    assert client.get("/waitlist/referrals", params={"email": "bad"}).status_code == 400


def test_signup_rate_limited(client):
    for i in range(5):
        assert client.post("/waitlist", json=_signup(email=f"user{i}@example.com")).status_code == 201

    response = client.post("/waitlist", json=_signup(email="user5@example.com"))

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "3600"
