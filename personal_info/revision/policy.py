"""Revision rules for person records.

Pure functions: every function here takes record values and returns new
ones. Nothing touches storage and nothing mutates its arguments.

Rules applied to an accepted update:
- Throttle: a record may be revised at most once per minimum interval,
  measured from the stored record's last_modified.
- Snapshot: each tracked field's old_* value is replaced by the previous live
  value only when the field changed; otherwise the prior old_* value stays.
- Timestamp chaining: old_modified_date takes the previous last_modified.
- Version advance: numeric version + 0.01, two decimals; unparsable → "1.00".
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from loguru import logger

from personal_info.models.person import INITIAL_VERSION, PersonRecord, as_utc

TRACKED_FIELDS: tuple[str, ...] = (
    "name",
    "email",
    "date_of_birth",
    "address",
    "phone_number",
    "gender",
)

MIN_UPDATE_INTERVAL = timedelta(seconds=15)
RESET_VERSION = "1.00"
VERSION_STEP = Decimal("0.01")

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


@dataclass(frozen=True)
class Throttled:
    """Revision rejected: the record was modified too recently."""

    seconds_remaining: int


def old_field(field: str) -> str:
    return f"old_{field}"


def check_throttle(
    existing: PersonRecord,
    now: datetime,
    min_interval: timedelta = MIN_UPDATE_INTERVAL,
) -> Throttled | None:
    """Return Throttled if existing was modified less than min_interval ago.

    Only the stored record's timestamp counts; whatever the client sent as
    last_modified is irrelevant here.
    """
    last_modified = as_utc(existing.last_modified)
    if last_modified is None:
        return None

    elapsed = now - last_modified
    if elapsed >= min_interval:
        return None

    remaining = min_interval - elapsed
    return Throttled(seconds_remaining=math.floor(remaining.total_seconds()))


def snapshot_changes(existing: PersonRecord, incoming: PersonRecord) -> dict[str, Any]:
    """Compute old_* values for incoming from a comparison with existing."""
    snapshot: dict[str, Any] = {}
    for field in TRACKED_FIELDS:
        previous = getattr(existing, field)
        if previous != getattr(incoming, field):
            snapshot[old_field(field)] = previous
        else:
            snapshot[old_field(field)] = getattr(existing, old_field(field))
    return snapshot


def parse_version(version: str | None) -> Decimal | None:
    """Read the leading decimal number of a version string.

    "2.50" → 2.50, "1.0.0" → 1.0, "abc" → None.
    """
    if not version:
        return None
    match = _LEADING_NUMBER.match(version)
    if match is None:
        return None
    return Decimal(match.group(1))


def advance_version(version: str | None) -> str:
    """Return the version following `version`, always with two decimals."""
    current = parse_version(version)
    if current is None:
        logger.warning(f"Unparsable version {version!r}, resetting to {RESET_VERSION}")
        return RESET_VERSION
    advanced = (current + VERSION_STEP).quantize(VERSION_STEP, rounding=ROUND_HALF_UP)
    return f"{advanced:.2f}"


def plan_revision(
    existing: PersonRecord,
    incoming: PersonRecord,
    now: datetime,
    min_interval: timedelta = MIN_UPDATE_INTERVAL,
) -> PersonRecord | Throttled:
    """Decide a revision of existing with the client values in incoming.

    Returns the record to persist, or Throttled when the interval since the
    last accepted revision has not elapsed. The returned record keeps
    existing's id, created_at and storage token; the client's version and
    timestamps are discarded.
    """
    throttled = check_throttle(existing, now, min_interval)
    if throttled is not None:
        return throttled

    update = snapshot_changes(existing, incoming)
    update.update(
        id=existing.id,
        old_modified_date=existing.last_modified,
        last_modified=now,
        version=advance_version(existing.version),
        created_at=existing.created_at,
        row_version=existing.row_version,
    )
    return incoming.model_copy(update=update)


def prepare_for_creation(incoming: PersonRecord, now: datetime) -> PersonRecord:
    """Normalize a client record before insertion.

    The id is always left for the store to assign and every history field is
    cleared, whatever the client sent.
    """
    update: dict[str, Any] = {old_field(field): None for field in TRACKED_FIELDS}
    update.update(
        id=None,
        last_modified=now,
        old_modified_date=None,
        created_at=None,
        row_version=None,
        version=incoming.version or INITIAL_VERSION,
    )
    return incoming.model_copy(update=update)
