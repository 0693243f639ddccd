import pytest

from marketplace.auth import open_session
from marketplace.collections import COLLECTION_USERS
from marketplace.session import Identity, SessionContext


def test_observer_fires_on_subscribe_and_changes():
    session = SessionContext()
    seen = []

    session.observe(lambda s: seen.append(s.uid))
    session.sign_in(Identity(uid="u1"))
    session.sign_out()

    assert seen == [None, "u1", None]


def test_unsubscribe_stops_notifications():
    session = SessionContext()
    seen = []

    unsubscribe = session.observe(lambda s: seen.append(s.uid))
    unsubscribe()
    session.sign_in(Identity(uid="u1"))

    assert seen == [None]


def test_observer_errors_propagate():
    session = SessionContext()

    def broken(s):
        if s.identity is not None:
            raise RuntimeError("observer failed")

    session.observe(broken)
    with pytest.raises(RuntimeError):
        session.sign_in(Identity(uid="u1"))


def test_roles():
    session = SessionContext(Identity(uid="u1"), {"role": "admin", "accountType": "provider"})
    assert session.is_authenticated
    assert session.is_admin
    assert session.is_provider
    assert not SessionContext().is_admin


def test_open_session_creates_customer_profile_once(store):
    session = open_session(Identity(uid="u1", email="jane@example.com", display_name="Jane"), store)

    assert session.profile["accountType"] == "customer"
    assert session.profile["role"] == "user"
    assert session.profile["displayName"] == "Jane"

    store.update(COLLECTION_USERS, "u1", {"accountType": "provider"})
    again = open_session(Identity(uid="u1", email="jane@example.com"), store)
    assert again.profile["accountType"] == "provider"


def test_open_session_applies_defaults_to_new_profiles(store):
    session = open_session(Identity(uid="u2"), store, defaults={"accountType": "provider"})
    assert session.profile["accountType"] == "provider"
