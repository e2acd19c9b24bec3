"""
Tests for the edit preview store
"""

import pytest

from tripdesk.errors import EditConflictError
from tripdesk.interfaces import EditStore, MemoryStore
from tripdesk.parsers import propose_edit
from tripdesk.schemas import EditStatus


@pytest.fixture
def edit():
    return propose_edit("decrease price by 500", {"id": "FL001", "price": 4500}, "flight", "FL001")


def test_save_and_get(edit):
    store = EditStore(MemoryStore())

    store.save(edit)
    loaded = store.get(edit.id)

    assert loaded == edit
    assert loaded.status is EditStatus.PREVIEW


def test_missing_edit():
    assert EditStore(MemoryStore()).get("EDIT_missing") is None


def test_previews_expire(edit, clock):
    store = EditStore(MemoryStore(clock=clock), ttl_seconds=60)
    store.save(edit)

    clock.advance(61)

    assert store.get(edit.id) is None


def test_saving_again_replaces_status(edit):
    store = EditStore(MemoryStore())
    store.save(edit)

    store.save(edit.model_copy(update={"status": EditStatus.REJECTED, "rejected_by": "u1"}))

    assert store.get(edit.id).status is EditStatus.REJECTED
    assert store.get(edit.id).rejected_by == "u1"


def test_corrupt_entries_are_discarded():
    kv = MemoryStore()
    kv.set("edit:EDIT_bad", {"id": "EDIT_bad"})

    assert EditStore(kv).get("EDIT_bad") is None
    assert kv.get("edit:EDIT_bad") is None


def test_lock_is_exclusive_and_released(edit):
    store = EditStore(MemoryStore())

    with store.locked(edit.id):
        with pytest.raises(EditConflictError):
            with store.locked(edit.id):
                pass

    with store.locked(edit.id):
        pass


def test_lock_released_on_error(edit):
    store = EditStore(MemoryStore())

    with pytest.raises(RuntimeError):
        with store.locked(edit.id):
            raise RuntimeError("boom")

    with store.locked(edit.id):
        pass


def test_listing_lock_spans_edits_of_one_listing(edit):
    store = EditStore(MemoryStore())
    other = propose_edit("increase price by 500", {"id": "FL001", "price": 4500}, "flight", "FL001")

    with store.locked(edit.id), store.listing_locked("flight", "FL001"):
        # A different edit of the same listing still has to wait
        with store.locked(other.id):
            with pytest.raises(EditConflictError, match="Flight FL001"):
                with store.listing_locked("flight", "FL001"):
                    pass
        # Other listings are unaffected
        with store.listing_locked("flight", "FL002"), store.listing_locked("bus", "FL001"):
            pass

    with store.listing_locked("flight", "FL001"):
        pass
