"""Dashboard aggregations over person records.

Each function returns a ChartData with parallel `labels` / `data` lists,
ready for a bar, pie or line chart.
"""

from __future__ import annotations

from collections import Counter
from datetime import date

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from personal_info.db.models import Person
from personal_info.models.person import ChartData, as_utc

UNKNOWN_GENDER = "Unknown"
UNKNOWN_AGE = "Unknown"
AGE_GROUPS: tuple[str, ...] = ("0-18", "19-35", "36-50", "51+")


def gender_distribution(session: Session) -> ChartData:
    """Count persons per gender; null and empty genders are reported as Unknown."""
    rows = session.execute(select(Person.gender, func.count(Person.id)).group_by(Person.gender).order_by(Person.gender)).all()

    counts: Counter[str] = Counter()
    for gender, count in rows:
        counts[gender or UNKNOWN_GENDER] += count

    chart = ChartData(labels=list(counts), data=list(counts.values()))
    logger.debug(f"Gender distribution: {dict(counts)}")
    return chart


def age_on(date_of_birth: date, today: date) -> int:
    """Age in whole years; one less while this year's birthday is still ahead."""
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def age_group(age: int) -> str:
    if age < 0:
        return UNKNOWN_AGE
    if age <= 18:
        return "0-18"
    if age <= 35:
        return "19-35"
    if age <= 50:
        return "36-50"
    return "51+"


def age_distribution(session: Session, today: date | None = None) -> ChartData:
    """Count persons per age group.

    The four regular groups are always present, in order, even at zero.
    Unknown (date of birth in the future) is appended only when non-empty.
    """
    today = today or date.today()
    births = session.execute(select(Person.date_of_birth)).scalars()
    counts = Counter(age_group(age_on(born, today)) for born in births)

    labels = list(AGE_GROUPS)
    data = [counts.get(group, 0) for group in AGE_GROUPS]
    if counts.get(UNKNOWN_AGE):
        labels.append(UNKNOWN_AGE)
        data.append(counts[UNKNOWN_AGE])
    return ChartData(labels=labels, data=data)


def monthly_registration_trend(session: Session) -> ChartData:
    """Count persons created per calendar month (UTC), oldest month first."""
    created = session.execute(select(Person.created_at)).scalars()
    counts = Counter(as_utc(ts).strftime("%Y-%m") for ts in created if ts is not None)

    months = sorted(counts)
    return ChartData(labels=months, data=[counts[month] for month in months])
