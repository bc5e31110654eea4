"""Thin data-access layer around the `person` table.

The store speaks PersonRecord values in and out; ORM rows never leave this
module. Transactions belong to the caller's session: nothing here commits.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger
from sqlalchemy import ColumnElement, Select, delete, func, or_, select, update
from sqlalchemy.orm import Session

from personal_info.db.models import Person
from personal_info.models.person import PersonRecord
from personal_info.persistence.errors import ConcurrencyConflictError

# Columns owned by the store, never written from a record value.
_STORE_OWNED = {"id", "created_at", "row_version"}


def _row_values(record: PersonRecord) -> dict:
    values = record.model_dump(exclude=_STORE_OWNED)
    values["email"] = str(record.email)
    return values


def _to_record(row: Person) -> PersonRecord:
    return PersonRecord.model_validate(row)


def _search_clause(search: str | None) -> ColumnElement[bool] | None:
    if not search or not search.strip():
        return None
    term = search.strip()
    return or_(
        Person.name.icontains(term, autoescape=True),
        Person.email.icontains(term, autoescape=True),
    )


class PersonStore:
    """Persistence collaborator for person records."""

    def __init__(self, session: Session):
        self.session = session

    # ---- reads ---------------------------------------------------------

    def find_by_id(self, record_id: int) -> PersonRecord | None:
        q = select(Person).where(Person.id == record_id).execution_options(populate_existing=True)
        row = self.session.execute(q).scalar_one_or_none()
        return _to_record(row) if row else None

    def exists(self, record_id: int) -> bool:
        q = select(func.count()).select_from(Person).where(Person.id == record_id)
        return bool(self.session.execute(q).scalar_one())

    def query(self, search: str | None = None, offset: int = 0, limit: int | None = None) -> list[PersonRecord]:
        """Return records ordered by id, optionally filtered by name/email substring."""
        q: Select = select(Person).order_by(Person.id).execution_options(populate_existing=True)
        clause = _search_clause(search)
        if clause is not None:
            q = q.where(clause)
        if offset:
            q = q.offset(offset)
        if limit is not None:
            q = q.limit(limit)
        return [_to_record(row) for row in self.session.execute(q).scalars()]

    def count(self, search: str | None = None) -> int:
        q = select(func.count()).select_from(Person)
        clause = _search_clause(search)
        if clause is not None:
            q = q.where(clause)
        return int(self.session.execute(q).scalar_one())

    def all(self) -> list[PersonRecord]:
        return self.query()

    # ---- writes --------------------------------------------------------

    def insert(self, record: PersonRecord) -> PersonRecord:
        """Insert one record; the database assigns id and created_at."""
        row = Person(**_row_values(record))
        self.session.add(row)
        self.session.flush()
        logger.debug(f"Inserted person id={row.id}")
        return _to_record(row)

    def insert_many(self, records: Iterable[PersonRecord]) -> list[PersonRecord]:
        """Insert records in one flush; the caller's transaction makes it all-or-nothing."""
        rows = [Person(**_row_values(record)) for record in records]
        self.session.add_all(rows)
        self.session.flush()
        logger.debug(f"Inserted {len(rows)} persons")
        return [_to_record(row) for row in rows]

    def replace(self, record: PersonRecord) -> PersonRecord:
        """Overwrite the stored row with record, keyed by id.

        When record carries a row_version, the write only applies if the
        stored row still has that row_version. No affected row means the row
        changed or vanished since it was read → ConcurrencyConflictError.
        """
        if record.id is None:
            raise ValueError("Cannot replace a record without id")

        stmt = update(Person).where(Person.id == record.id)
        if record.row_version is not None:
            stmt = stmt.where(Person.row_version == record.row_version)
        stmt = stmt.values(**_row_values(record), row_version=Person.row_version + 1).execution_options(
            synchronize_session=False
        )

        result = self.session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrencyConflictError(record.id, record.row_version)

        stored = self.find_by_id(record.id)
        if stored is None:
            raise ConcurrencyConflictError(record.id, record.row_version)
        return stored

    def remove(self, record_id: int) -> bool:
        result = self.session.execute(delete(Person).where(Person.id == record_id).execution_options(synchronize_session=False))
        return result.rowcount > 0

    def remove_many(self, record_ids: Sequence[int]) -> int:
        """Delete every listed id in one statement; returns the number removed."""
        if not record_ids:
            return 0
        stmt = delete(Person).where(Person.id.in_(list(record_ids))).execution_options(synchronize_session=False)
        result = self.session.execute(stmt)
        return result.rowcount
