"""Tests for RevisionManager against a real (in-memory) store."""

from datetime import timedelta

import pytest

from personal_info.persistence.errors import ConcurrencyConflictError
from personal_info.revision.manager import NotFound, RevisionManager, Updated
from personal_info.revision.policy import Throttled


@pytest.fixture
def manager(store, clock) -> RevisionManager:
    return RevisionManager(store, min_interval=timedelta(seconds=15), clock=clock)


@pytest.fixture
def alice(manager, make_person):
    return manager.create_record(make_person(name="Alice", email="a@a.com"))


def test_create_record_normalizes_and_assigns_id(manager, make_person, clock):
    created = manager.create_record(make_person(id=99, old_name="ghost", version=None))

    assert created.id == 1
    assert created.version == "1.0.0"
    assert created.old_name is None
    assert created.last_modified == clock.now
    assert created.row_version == 1


def test_create_records_processes_each_record(manager, make_person, store):
    created = manager.create_records(
        [
            make_person(id=5, name="One", email="one@x.com", old_email="stale@x.com"),
            make_person(id=5, name="Two", email="two@x.com", version="4.20"),
        ]
    )

    assert [person.name for person in created] == ["One", "Two"]
    assert len({person.id for person in created}) == 2
    assert created[0].old_email is None
    assert created[1].version == "4.20"
    assert store.count() == 2


def test_throttled_update_leaves_storage_untouched(manager, alice, store, clock, make_person):
    clock.advance(5)

    outcome = manager.revise_record(alice, make_person(id=alice.id, name="Alicia"))

    assert outcome == Throttled(seconds_remaining=10)
    assert store.find_by_id(alice.id) == alice


def test_accepted_update_is_persisted(manager, alice, store, clock, make_person):
    created_at = clock.now
    clock.advance(15)

    outcome = manager.revise_record(alice, make_person(id=alice.id, name="Alice", email="b@a.com"))

    assert isinstance(outcome, Updated)
    stored = store.find_by_id(alice.id)
    assert stored == outcome.record
    assert stored.version == "1.01"
    assert stored.email == "b@a.com"
    assert stored.old_email == "a@a.com"
    assert stored.old_name is None
    assert stored.old_modified_date == created_at
    assert stored.last_modified == clock.now
    assert stored.row_version == alice.row_version + 1


def test_update_does_not_mutate_arguments(manager, alice, clock, make_person):
    incoming = make_person(id=alice.id, name="Alicia")
    before = incoming.model_dump()
    clock.advance(30)

    manager.revise_record(alice, incoming)

    assert incoming.model_dump() == before
    assert alice.version == "1.0.0"


def test_update_of_vanished_record_is_not_found(manager, alice, store, clock, make_person):
    store.remove(alice.id)
    clock.advance(20)

    outcome = manager.revise_record(alice, make_person(id=alice.id, name="Alicia"))

    assert outcome == NotFound(alice.id)


def test_concurrent_modification_propagates(manager, alice, store, clock, make_person):
    clock.advance(20)
    assert isinstance(manager.revise_record(alice, make_person(id=alice.id, name="First")), Updated)

    # alice is now stale: its row_version predates the first write
    clock.advance(20)
    with pytest.raises(ConcurrencyConflictError) as exc_info:
        manager.revise_record(alice, make_person(id=alice.id, name="Second"))

    assert exc_info.value.record_id == alice.id
    assert store.find_by_id(alice.id).name == "First"


def test_successive_revisions_chain(manager, alice, store, clock, make_person):
    clock.advance(15)
    first = manager.revise_record(alice, make_person(id=alice.id, name="Alicia"))
    first_time = clock.now
    clock.advance(15)
    second = manager.revise_record(first.record, make_person(id=alice.id, name="Alicia", gender="F"))

    assert isinstance(second, Updated)
    assert second.record.old_name == "Alice"
    assert second.record.old_gender is None
    assert second.record.gender == "F"
    assert second.record.old_modified_date == first_time
    assert second.record.version == "1.02"
