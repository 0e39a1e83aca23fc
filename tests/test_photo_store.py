"""Tests for the in-memory session store."""

from datetime import timedelta

from photobooth.services.photo_store import InMemoryPhotoStore
from tests.conftest import FakeClock


def test_create_get_delete() -> None:
    store = InMemoryPhotoStore()

    session = store.create("0001", active=True)

    assert store.get("0001") is session
    assert session.active is True
    store.delete("0001")
    assert store.get("0001") is None
    store.delete("0001")


def test_ensure_recreates_missing_session() -> None:
    store = InMemoryPhotoStore()
    existing = store.create("0001")

    assert store.ensure("0001") is existing
    recreated = store.ensure("00zz")
    assert recreated.id == "00zz"
    assert recreated.photos == []
    assert store.count() == 2


def test_expired_session_is_evicted_on_read() -> None:
    clock = FakeClock()
    store = InMemoryPhotoStore(clock=clock)
    session = store.create("0001")
    session.expires_at = clock.now + timedelta(seconds=600)

    clock.advance(599)
    assert store.get("0001") is session

    clock.advance(1)
    assert store.get("0001") is None
    assert store.count() == 0


def test_purge_expired_returns_removed_ids() -> None:
    clock = FakeClock()
    store = InMemoryPhotoStore(clock=clock)
    store.create("0001").expires_at = clock.now + timedelta(seconds=10)
    store.create("0002").expires_at = clock.now + timedelta(seconds=100)
    store.create("0003")

    clock.advance(50)

    assert store.purge_expired() == ["0001"]
    assert store.count() == 2
