"""Pydantic schemas for person records.

This module defines the immutable record value shared by the API layer, the
revision manager and the store, plus the response envelopes of the REST
contract (paged listing, chart series, revision info). JSON uses camelCase
keys; Python code uses snake_case attribute names.
"""

from datetime import date, datetime, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email

INITIAL_VERSION = "1.0.0"

T = TypeVar("T")


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps (SQLite drops tzinfo on the way back)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class CamelModel(BaseModel):
    """Base schema with camelCase JSON aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonRecord(CamelModel):
    """A person record as a frozen value.

    Revisions never mutate a record in place; they produce a copy via
    `model_copy(update=...)`.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, from_attributes=True)

    id: int | None = Field(default=None, description="System-assigned identifier")
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255)
    date_of_birth: date
    address: str | None = Field(default=None, max_length=500)
    phone_number: str | None = Field(default=None, max_length=50)
    gender: str | None = Field(default=None, max_length=10)
    last_modified: datetime | None = None
    version: str | None = INITIAL_VERSION

    old_name: str | None = Field(default=None, max_length=255)
    old_email: str | None = Field(default=None, max_length=255)
    old_date_of_birth: date | None = None
    old_address: str | None = Field(default=None, max_length=500)
    old_phone_number: str | None = Field(default=None, max_length=50)
    old_gender: str | None = Field(default=None, max_length=10)
    old_modified_date: datetime | None = None

    created_at: datetime | None = Field(default=None, description="Set by the store on insert")
    row_version: int | None = Field(default=None, exclude=True, description="Storage concurrency token")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        """Reject malformed addresses but keep the value exactly as submitted."""
        _, normalized = validate_email(value)
        if normalized.casefold() != value.casefold():
            raise ValueError("value is not a valid email address")
        return value

    @field_validator("last_modified", "old_modified_date", "created_at")
    @classmethod
    def normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class RevisionInfo(CamelModel):
    """Previous-value view of a record (the audit trail)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    version: str | None
    last_modified: datetime | None = None
    old_name: str | None = None
    old_email: str | None = None
    old_date_of_birth: date | None = None
    old_address: str | None = None
    old_phone_number: str | None = None
    old_gender: str | None = None
    old_modified_date: datetime | None = None


class PagedResult(CamelModel, Generic[T]):
    """One page of a listing."""

    items: list[T] = Field(default_factory=list)
    total_count: int
    page_number: int
    page_size: int
    total_pages: int


class ChartData(CamelModel):
    """Parallel label/value series for dashboard charts."""

    labels: list[str] = Field(default_factory=list)
    data: list[int] = Field(default_factory=list)
