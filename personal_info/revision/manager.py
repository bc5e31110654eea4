"""Record revision manager.

Applies the revision rules from `personal_info.revision.policy` to a stored
record and writes the result through a PersonStore.

Outcomes are plain return values; callers branch on their type:
- Updated: the revision was persisted
- Throttled: rejected, retry after seconds_remaining
- NotFound: the record vanished between read and write

Only storage faults propagate as exceptions, including
ConcurrencyConflictError when the row changed under us but still exists.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from loguru import logger

from personal_info.models.person import PersonRecord
from personal_info.persistence.errors import ConcurrencyConflictError
from personal_info.persistence.store import PersonStore
from personal_info.revision.policy import (
    MIN_UPDATE_INTERVAL,
    Throttled,
    plan_revision,
    prepare_for_creation,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Updated:
    """Revision accepted and stored."""

    record: PersonRecord


@dataclass(frozen=True)
class NotFound:
    """Target record does not exist (anymore)."""

    record_id: int | None


Outcome = Updated | Throttled | NotFound


class RevisionManager:
    """Enforces the update contract for person records."""

    def __init__(
        self,
        store: PersonStore,
        min_interval: timedelta = MIN_UPDATE_INTERVAL,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.min_interval = min_interval
        self.clock = clock

    def revise_record(self, existing: PersonRecord, incoming: PersonRecord) -> Outcome:
        """Revise existing with the client-submitted incoming record.

        The caller has already loaded existing and checked that incoming.id
        matches it. Neither argument is modified.
        """
        planned = plan_revision(existing, incoming, self.clock(), self.min_interval)
        if isinstance(planned, Throttled):
            logger.warning("Person updated too frequently", record_id=existing.id, seconds_remaining=planned.seconds_remaining)
            return planned

        try:
            stored = self.store.replace(planned)
        except ConcurrencyConflictError as e:
            if not self.store.exists(existing.id):
                logger.warning("Person no longer exists, update dropped", record_id=existing.id)
                return NotFound(existing.id)
            logger.error("Concurrency conflict while updating person", record_id=existing.id, error=str(e))
            raise

        logger.info("Updated person", record_id=stored.id, version=stored.version)
        return Updated(stored)

    def create_record(self, incoming: PersonRecord) -> PersonRecord:
        record = prepare_for_creation(incoming, self.clock())
        created = self.store.insert(record)
        logger.info("Created person", record_id=created.id)
        return created

    def create_records(self, incoming: Iterable[PersonRecord]) -> list[PersonRecord]:
        """Normalize each record independently, then insert them together."""
        now = self.clock()
        records = [prepare_for_creation(record, now) for record in incoming]
        created = self.store.insert_many(records)
        logger.info(f"Created {len(created)} persons in bulk")
        return created
