from marketplace.collections import COLLECTION_BOOKINGS, COLLECTION_WAITLIST
from marketplace.store import SERVER_TIMESTAMP


def _admin(login):
    return login(uid="admin-1", email="admin@example.com", role="admin")


def test_analytics_require_admin(client, login):
    assert client.get("/admin/analytics/waitlist").status_code == 401
    login()
    assert client.get("/admin/analytics/waitlist").status_code == 403
    assert client.get("/admin/analytics/bookings").status_code == 403


def test_waitlist_analytics(client, login, store):
    for city in ("Provo", "Provo", "Lehi"):
        store.create(COLLECTION_WAITLIST, {"city": city, "servicesInterested": ["Full Detail"],
                                           "howSoon": "asap", "createdAt": SERVER_TIMESTAMP})
    store.create(COLLECTION_WAITLIST, {"servicesInterested": []})
    _admin(login)

    body = client.get("/admin/analytics/waitlist").json()

    assert body["totalCount"] == 4
    assert body["byCity"] == {"Provo": 2, "Lehi": 1, "Unknown": 1}
    assert body["topCity"] == "Provo"
    assert body["recentSignups"] == 3
    # Entries without a timestamp are left out of the recent list
    assert len(body["recentEntries"]) == 3


def test_booking_analytics(client, login, store):
    store.create(COLLECTION_BOOKINGS, {"service": {"name": "Full Detail"}, "status": "confirmed",
                                       "paymentStatus": "paid", "totalAmount": 200, "platformFee": 30,
                                       "createdAt": SERVER_TIMESTAMP})
    store.create(COLLECTION_BOOKINGS, {"service": {"name": "Full Detail"}, "status": "pending",
                                       "paymentStatus": "pending", "totalAmount": 200, "platformFee": 30,
                                       "createdAt": SERVER_TIMESTAMP})
    _admin(login)

    body = client.get("/admin/analytics/bookings").json()

    assert body["totalCount"] == 2
    assert body["grossRevenue"] == 200
    assert body["platformRevenue"] == 30
    assert body["byStatus"] == {"confirmed": 1, "pending": 1}
    assert body["topService"] == "Full Detail"
