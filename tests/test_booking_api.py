from marketplace.collections import COLLECTION_BOOKINGS, COLLECTION_PROVIDERS
from marketplace.domain.bookings.repository import BookingRepository
from marketplace.domain.bookings.service import get_settlement_queue
from marketplace.main import app
from marketplace.store import StoreError

from .conftest import FakeSettlementQueue


def _fill_booking_wizard(client, **extra):
    state = client.patch("/bookings/wizard", json={"serviceId": 3, **extra}).json()
    assert state["canAdvance"] is True
    client.post("/bookings/wizard/advance")

    client.patch("/bookings/wizard", json={"date": "2030-01-15", "time": "9:00 AM"})
    client.post("/bookings/wizard/advance")

    client.patch(
        "/bookings/wizard",
        json={"vehicle": {"make": "Honda", "model": "Civic", "year": 2020}, "address": " 123 Main St "},
    )
    client.post("/bookings/wizard/advance")
    client.post("/bookings/wizard/advance")
    state = client.get("/bookings/wizard").json()
    assert state["currentStep"] == 5
    assert state["isTerminal"] is True
    return state


def test_catalog_is_public(client):
    body = client.get("/bookings/catalog").json()
    assert [s["price"] for s in body["services"]] == [50, 120, 150, 200, 400, 800]
    assert len(body["timeSlots"]) == 9


def test_wizard_requires_authentication(client):
    assert client.get("/bookings/wizard").status_code == 401


def test_fresh_wizard_state(client, login):
    login()
    state = client.get("/bookings/wizard").json()
    assert state == {
        "flow": "booking",
        "currentStep": 1,
        "totalSteps": 5,
        "stepName": "service",
        "canAdvance": False,
        "isTerminal": False,
        "draft": {},
    }


def test_advance_blocked_until_step_complete(client, login):
    login()
    state = client.post("/bookings/wizard/advance").json()
    assert state["currentStep"] == 1

    client.patch("/bookings/wizard", json={"serviceId": 1})
    client.post("/bookings/wizard/advance")
    state = client.post("/bookings/wizard/advance").json()
    assert state["currentStep"] == 2
    assert state["stepName"] == "schedule"


def test_retreat_and_reset(client, login):
    login()
    client.patch("/bookings/wizard", json={"serviceId": 1})
    client.post("/bookings/wizard/advance")

    state = client.post("/bookings/wizard/retreat").json()
    assert state["currentStep"] == 1
    assert state["draft"]["serviceId"] == 1

    state = client.post("/bookings/wizard/reset").json()
    assert state["currentStep"] == 1
    assert state["draft"] == {}


def test_invalid_draft_fields_rejected(client, login):
    login()
    assert client.patch("/bookings/wizard", json={"serviceId": 99}).status_code == 422
    assert client.patch("/bookings/wizard", json={"time": "7:00 PM"}).status_code == 422
    assert client.patch("/bookings/wizard", json={"vehicle": {"year": "20"}}).status_code == 422


def test_submit_before_final_step_rejected(client, login):
    login()
    client.patch("/bookings/wizard", json={"serviceId": 3})

    response = client.post("/bookings/wizard/submit")

    assert response.status_code == 400


def test_submit_creates_booking_and_queues_settlement(client, login, store, settlement_queue):
    login()
    _fill_booking_wizard(client)

    response = client.post("/bookings/wizard/submit")

    assert response.status_code == 201
    body = response.json()
    booking = body["booking"]
    assert booking["service"]["name"] == "Exterior Detail"
    assert booking["totalAmount"] == 150
    assert booking["platformFee"] == 23
    assert booking["providerAmount"] == 128
    assert booking["status"] == "pending"
    assert booking["paymentStatus"] == "pending"
    assert booking["address"] == "123 Main St"
    assert booking["vehicle"] == {"make": "Honda", "model": "Civic", "year": "2020"}
    assert booking["customerName"] == "Jane Doe"
    assert settlement_queue.enqueued == [body["id"]]

    stored = store.get(COLLECTION_BOOKINGS, body["id"])
    assert stored["customerId"] == "user-1"
    assert stored["settlementAttempts"] == 0

    state = client.get("/bookings/wizard").json()
    assert state["currentStep"] == 1
    assert state["draft"] == {}


def test_submit_persist_failure_keeps_wizard(client, login, monkeypatch):
    login()
    _fill_booking_wizard(client)

    def fail(store, record):
        raise StoreError("write failed")

    monkeypatch.setattr(BookingRepository, "create_booking", staticmethod(fail))

    response = client.post("/bookings/wizard/submit")

    assert response.status_code == 502
    assert response.json()["detail"] == "Something went wrong. Please try again."
    state = client.get("/bookings/wizard").json()
    assert state["currentStep"] == 5
    assert state["draft"]["serviceId"] == 3


def test_queue_failure_does_not_fail_booking(client, login):
    login()
    app.dependency_overrides[get_settlement_queue] = lambda: FakeSettlementQueue(fail=True)
    _fill_booking_wizard(client)

    response = client.post("/bookings/wizard/submit")

    assert response.status_code == 201
    assert response.json()["booking"]["paymentStatus"] == "pending"


def test_booking_with_approved_provider(client, login, store):
    store.set(COLLECTION_PROVIDERS, "prov-1", {"businessName": "Shine Co", "status": "approved"})
    login()
    _fill_booking_wizard(client, providerId="prov-1")

    booking = client.post("/bookings/wizard/submit").json()["booking"]

    assert booking["providerId"] == "prov-1"
    assert booking["providerName"] == "Shine Co"


def test_unapproved_provider_rejected(client, login, store):
    store.set(COLLECTION_PROVIDERS, "prov-2", {"businessName": "Pending Co", "status": "pending"})
    login()
    response = client.patch("/bookings/wizard", json={"providerId": "prov-2"})
    assert response.status_code == 400


def test_my_bookings_and_ownership(client, login):
    login()
    _fill_booking_wizard(client)
    booking_id = client.post("/bookings/wizard/submit").json()["id"]

    mine = client.get("/bookings/mine").json()
    assert [b["id"] for b in mine] == [booking_id]
    assert client.get(f"/bookings/{booking_id}").status_code == 200

    login(uid="user-2", email="sam@example.com")
    assert client.get(f"/bookings/{booking_id}").status_code == 404
    assert client.get("/bookings/mine").json() == []


def _at_details_step(client):
    client.patch("/bookings/wizard", json={"serviceId": 3})
    client.post("/bookings/wizard/advance")
    client.patch("/bookings/wizard", json={"date": "2030-01-15", "time": "9:00 AM"})
    state = client.post("/bookings/wizard/advance").json()
    assert state["currentStep"] == 3
    return state


def test_schedule_step_needs_date_and_time(client, login):
    login()
    client.patch("/bookings/wizard", json={"serviceId": 3})
    client.post("/bookings/wizard/advance")

    client.patch("/bookings/wizard", json={"date": "2030-01-15"})
    assert client.post("/bookings/wizard/advance").json()["currentStep"] == 2

    client.post("/bookings/wizard/reset")
    client.patch("/bookings/wizard", json={"serviceId": 3})
    client.post("/bookings/wizard/advance")
    client.patch("/bookings/wizard", json={"time": "9:00 AM"})
    state = client.post("/bookings/wizard/advance").json()
    assert state["currentStep"] == 2
    assert state["canAdvance"] is False


def test_details_step_needs_vehicle_and_address(client, login):
    login()
    _at_details_step(client)

    client.patch("/bookings/wizard", json={"vehicle": {"make": "Honda", "model": "Civic"}})
    assert client.post("/bookings/wizard/advance").json()["currentStep"] == 3

    client.patch("/bookings/wizard", json={"address": "   "})
    assert client.post("/bookings/wizard/advance").json()["currentStep"] == 3

    client.post("/bookings/wizard/reset")
    _at_details_step(client)
    client.patch("/bookings/wizard", json={"address": "123 Main St"})
    state = client.post("/bookings/wizard/advance").json()
    assert state["currentStep"] == 3
    assert state["canAdvance"] is False

    client.patch("/bookings/wizard", json={"vehicle": {"make": "Honda"}})
    assert client.post("/bookings/wizard/advance").json()["currentStep"] == 4


def test_submit_issues_intent_for_catalog_price(client, login, store):
    login()
    client.patch("/bookings/wizard", json={"paymentMethodId": "pm_card", "paymentIntentId": "pi_cheap"})
    _fill_booking_wizard(client, serviceId=6)

    booking_id = client.post("/bookings/wizard/submit").json()["id"]

    stored = store.get(COLLECTION_BOOKINGS, booking_id)
    assert stored["totalAmount"] == 800
    assert stored["paymentMethodId"] == "pm_card"
    assert stored["paymentIntentId"].startswith("pi_")
    assert stored["paymentIntentId"] != "pi_cheap"


def test_submit_without_card_has_no_intent(client, login, store):
    login()
    _fill_booking_wizard(client)

    booking_id = client.post("/bookings/wizard/submit").json()["id"]

    assert store.get(COLLECTION_BOOKINGS, booking_id)["paymentIntentId"] is None
