from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class Person(Base):
    """Person record with an embedded single-step change history.

    Stores:
    - Live fields: name, email, date_of_birth, address, phone_number, gender
    - Display version string and last modification timestamp
    - Shadow fields (old_*): the value each live field held before the most
      recent accepted revision that changed it
    - old_modified_date: last_modified as it was before the most recent revision
    - created_at: insertion timestamp (registration trend)
    - row_version: storage-owned concurrency token, bumped on every write

    Constraints:
    - id is assigned by the database
    - row_version is never exposed to clients and is unrelated to `version`
    """

    __tablename__ = "person"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    last_modified: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[str] = mapped_column(Text, nullable=False, default="1.0.0")

    old_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    old_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    old_date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    old_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    old_phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    old_gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    old_modified_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True
    )
    row_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("idx_person_name", "name"),
        {"sqlite_autoincrement": True},  # ids of deleted rows are never reused
    )
