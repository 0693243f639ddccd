from datetime import datetime, timezone

from marketplace.collections import COLLECTION_BOOKINGS, COLLECTION_PROVIDERS, COLLECTION_USERS
from marketplace.shared.crypto import decrypt_value

BUSINESS = {
    "businessName": "Shine Co",
    "businessType": "llc",
    "ein": "123456789",
    "ownerName": "Jane Doe",
    "phone": "801-555-1234",
    "serviceArea": "Provo, UT",
}
SERVICES = ["Full Detail", "Ceramic Coating", "Interior Detailing"]


def _complete_application(client):
    client.patch("/providers/application", json=BUSINESS)
    client.post("/providers/application/advance")
    client.patch("/providers/application", json={"services": SERVICES, "yearsExperience": "3-5 years"})
    client.post("/providers/application/advance")
    client.patch("/providers/application", json={"backgroundCheck": True})
    client.post("/providers/application/advance")
    client.patch(
        "/providers/application",
        json={"bankAccountHolder": "Shine Co", "routingNumber": "021000021", "bankAccount": "0001-2345-6789"},
    )
    state = client.post("/providers/application/advance").json()
    assert state["currentStep"] == 5
    return state


def test_application_options_are_public(client):
    body = client.get("/providers/application/options").json()
    assert len(body["services"]) == 8
    assert "llc" in body["businessTypes"]


def test_business_step_requires_name_ein_and_owner(client, login):
    login()
    state = client.patch("/providers/application", json={"businessName": "Shine Co"}).json()
    assert state["canAdvance"] is False

    state = client.patch("/providers/application", json={"ein": "12-3456789", "ownerName": "Jane"}).json()
    assert state["canAdvance"] is True
    assert state["draft"]["ein"] == "12-3456789"


def test_services_step_requires_three_services(client, login):
    login()
    client.patch("/providers/application", json=BUSINESS)
    client.post("/providers/application/advance")

    client.patch("/providers/application", json={"services": ["Full Detail", "Full Detail", "Ceramic Coating"]})
    state = client.post("/providers/application/advance").json()
    assert state["currentStep"] == 2

    client.patch("/providers/application", json={"services": SERVICES})
    state = client.post("/providers/application/advance").json()
    assert state["currentStep"] == 3


def test_unknown_service_rejected(client, login):
    login()
    response = client.patch("/providers/application", json={"services": ["Window Tinting"]})
    assert response.status_code == 422


def test_verification_requires_background_check(client, login):
    login()
    client.patch("/providers/application", json={**BUSINESS, "services": SERVICES})
    client.post("/providers/application/advance")
    client.post("/providers/application/advance")

    client.patch("/providers/application", json={"backgroundCheck": False})
    assert client.post("/providers/application/advance").json()["currentStep"] == 3


def test_bank_numbers_are_encrypted_and_hidden(client, login):
    login()
    state = _complete_application(client)

    draft = state["draft"]
    assert draft["routingNumberLast4"] == "0021"
    assert draft["bankAccountLast4"] == "6789"
    assert "routingNumber" not in draft
    assert not any(key.endswith("Encrypted") for key in draft)


def test_submit_application(client, login, store):
    login()
    _complete_application(client)

    response = client.post("/providers/application/submit")

    assert response.status_code == 201
    application_id = response.json()["id"]
    application = store.get(COLLECTION_PROVIDERS, application_id)
    assert application["status"] == "pending"
    assert application["userId"] == "user-1"
    assert application["email"] == "jane@example.com"
    assert application["services"] == SERVICES
    assert application["coordinates"] is None
    assert decrypt_value(application["routingNumberEncrypted"]) == "021000021"
    assert decrypt_value(application["bankAccountEncrypted"]) == "000123456789"

    profile = store.get(COLLECTION_USERS, "user-1")
    assert profile["providerApplicationId"] == application_id
    assert profile["accountType"] == "customer"

    assert client.get("/providers/application").json()["currentStep"] == 1
    assert client.post("/providers/application/submit").status_code == 409


def test_submit_before_review_rejected(client, login):
    login()
    client.patch("/providers/application", json=BUSINESS)
    assert client.post("/providers/application/submit").status_code == 400


def test_approval_promotes_user_and_lists_provider(client, login, store):
    login()
    _complete_application(client)
    application_id = client.post("/providers/application/submit").json()["id"]
    assert client.get("/providers").json() == []

    login(uid="user-1")
    assert client.post(f"/admin/providers/{application_id}/approve").status_code == 403

    login(uid="admin-1", email="admin@example.com", role="admin")
    response = client.post(f"/admin/providers/{application_id}/approve")

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approvedAt"] is not None
    assert store.get(COLLECTION_USERS, "user-1")["accountType"] == "provider"

    listings = client.get("/providers").json()
    assert [p["name"] for p in listings] == ["Shine Co"]
    assert listings[0]["certified"] is True
    assert listings[0]["tags"] == SERVICES


def test_approve_missing_application(client, login):
    login(uid="admin-1", email="admin@example.com", role="admin")
    assert client.post("/admin/providers/nope/approve").status_code == 404


def test_listing_sorted_by_distance_within_radius(client, store):
    store.set(COLLECTION_PROVIDERS, "lehi", {"businessName": "Lehi Shine", "status": "approved",
                                             "coordinates": {"lat": 40.3916, "lng": -111.8508}})
    store.set(COLLECTION_PROVIDERS, "provo", {"businessName": "Provo Shine", "status": "approved",
                                              "coordinates": {"lat": 40.2338, "lng": -111.6585}})
    store.set(COLLECTION_PROVIDERS, "slc", {"businessName": "SLC Shine", "status": "approved",
                                            "coordinates": {"lat": 40.7608, "lng": -111.8910}})
    store.set(COLLECTION_PROVIDERS, "pending", {"businessName": "Pending", "status": "pending"})

    listings = client.get("/providers", params={"lat": 40.24, "lng": -111.66, "radiusKm": 40}).json()

    assert [p["id"] for p in listings] == ["provo", "lehi"]
    assert listings[0]["distanceKm"] < listings[1]["distanceKm"]


def test_dashboard_requires_provider(client, login):
    login()
    assert client.get("/providers/dashboard").status_code == 403


def test_provider_dashboard(client, login, store):
    store.set(COLLECTION_PROVIDERS, "prov-1", {"businessName": "Shine Co", "status": "approved"})
    login(uid="pro-1", email="pro@example.com", accountType="provider", providerApplicationId="prov-1")
    store.create(COLLECTION_BOOKINGS, {
        "providerId": "prov-1",
        "customerName": "Ann",
        "service": {"name": "Full Detail"},
        "date": datetime.now(timezone.utc).date().isoformat(),
        "time": "9:00 AM",
        "providerAmount": 170,
        "status": "confirmed",
    })
    store.create(COLLECTION_BOOKINGS, {"providerId": "someone-else", "date": datetime.now(timezone.utc).date().isoformat()})

    response = client.get("/providers/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["providerId"] == "prov-1"
    assert body["businessName"] == "Shine Co"
    assert body["totalJobs"] == 1
    assert body["weekRevenue"] == 170
    assert body["rating"] == 4.9
    assert body["upcoming"][0]["customer"] == "Ann"
