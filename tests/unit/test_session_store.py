"""Tests for in-memory session stores."""

from datetime import datetime, timedelta, timezone

from hrbot.services.session_store import ClaimSessionStore, SessionStore


def test_session_store_basic_operations():
    store: SessionStore[int, str] = SessionStore()
    store.set(1, "a")

    assert store.get(1) == "a"
    assert 1 in store
    assert len(store) == 1
    assert store.pop(1) == "a"
    assert store.get(1) is None

    store.delete(1)  # missing key is fine


class TestClaimSessionStore:
    def test_create_assigns_unique_ids_and_expiry(self):
        store = ClaimSessionStore(ttl=timedelta(minutes=10))
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

        first = store.create(1, "req", 2, 7, form={"a": 1}, now=now)
        second = store.create(1, "req", 2, 7, form={"a": 1}, now=now)

        assert first.session_id != second.session_id
        assert first.expires_at == now + timedelta(minutes=10)
        assert store.get(first.session_id, now=now) is first

    def test_expired_session_is_dropped_on_lookup(self):
        store = ClaimSessionStore(ttl=timedelta(minutes=10))
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        session = store.create(1, None, 2, 7, form=None, now=now)

        assert store.get(session.session_id, now=now + timedelta(minutes=10)) is None
        assert session.session_id not in store

    def test_unknown_session(self):
        assert ClaimSessionStore().get("missing") is None
