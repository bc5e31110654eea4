"""Person API endpoints.

REST JSON contract consumed by the frontend: listing with search and
pagination, CRUD (single and bulk), dashboard aggregations and the revision
audit view.
"""

from __future__ import annotations

import math
from datetime import timedelta

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response, status
from loguru import logger

from personal_info.analytics.distributions import age_distribution, gender_distribution, monthly_registration_trend
from personal_info.core.settings import settings
from personal_info.db.session import get_session
from personal_info.models.person import ChartData, PagedResult, PersonRecord, RevisionInfo
from personal_info.persistence.store import PersonStore
from personal_info.revision.manager import Clock, NotFound, RevisionManager, utc_now
from personal_info.revision.policy import Throttled

router = APIRouter(prefix="/api/Persons", tags=["persons"])


def get_clock() -> Clock:
    """Time source for revisions (overridden in tests)."""
    return utc_now


def _manager(store: PersonStore, clock: Clock) -> RevisionManager:
    return RevisionManager(store, min_interval=timedelta(seconds=settings.min_update_interval_seconds), clock=clock)


@router.get("", response_model=PagedResult[PersonRecord])
def list_persons(
    search_string: str | None = Query(default=None, alias="searchString"),
    page_number: int = Query(default=1, ge=1, alias="pageNumber"),
    page_size: int | None = Query(default=None, ge=1, le=settings.max_page_size, alias="pageSize"),
) -> PagedResult[PersonRecord]:
    """List persons ordered by id, one page at a time.

    searchString matches name or email, case-insensitively.
    """
    page_size = page_size or settings.default_page_size
    logger.info(f"GET /api/Persons searchString={search_string!r} pageNumber={page_number} pageSize={page_size}")

    with get_session() as session:
        store = PersonStore(session)
        total_count = store.count(search_string)
        items = store.query(search_string, offset=(page_number - 1) * page_size, limit=page_size)

    total_pages = math.ceil(total_count / page_size)
    logger.info(f"Listed persons: total={total_count}, page={page_number}/{total_pages}")
    return PagedResult[PersonRecord](
        items=items,
        total_count=total_count,
        page_number=page_number,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/GenderDistribution", response_model=ChartData)
def get_gender_distribution() -> ChartData:
    with get_session() as session:
        return gender_distribution(session)


@router.get("/AgeDistribution", response_model=ChartData)
def get_age_distribution() -> ChartData:
    with get_session() as session:
        return age_distribution(session)


@router.get("/MonthlyRegistrationTrend", response_model=ChartData)
def get_monthly_registration_trend() -> ChartData:
    with get_session() as session:
        return monthly_registration_trend(session)


@router.get("/AdditionalInfo", response_model=list[RevisionInfo])
def get_additional_info() -> list[RevisionInfo]:
    """Previous values of every record, ordered by id."""
    with get_session() as session:
        records = PersonStore(session).all()
    return [RevisionInfo.model_validate(record) for record in records]


@router.get("/{person_id}", response_model=PersonRecord)
def get_person(person_id: int) -> PersonRecord:
    logger.info(f"GET /api/Persons/{person_id}")
    with get_session() as session:
        person = PersonStore(session).find_by_id(person_id)
    if person is None:
        logger.warning(f"Person {person_id} not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Person {person_id} not found")
    return person


@router.post("", response_model=PersonRecord, status_code=status.HTTP_201_CREATED)
def create_person(
    person: PersonRecord,
    request: Request,
    response: Response,
    clock: Clock = Depends(get_clock),
) -> PersonRecord:
    """Create a person. Client-supplied id and history fields are ignored."""
    logger.info("POST /api/Persons")
    with get_session() as session:
        created = _manager(PersonStore(session), clock).create_record(person)

    response.headers["Location"] = str(request.url_for("get_person", person_id=created.id))
    return created


@router.post("/BulkCreate", response_model=list[PersonRecord], status_code=status.HTTP_201_CREATED)
def bulk_create_persons(
    persons: list[PersonRecord] = Body(...),
    clock: Clock = Depends(get_clock),
) -> list[PersonRecord]:
    """Create several persons in one transaction."""
    logger.info(f"POST /api/Persons/BulkCreate count={len(persons)}")
    if not persons:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No persons provided")

    with get_session() as session:
        return _manager(PersonStore(session), clock).create_records(persons)


@router.put("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_person(
    person_id: int,
    person: PersonRecord,
    clock: Clock = Depends(get_clock),
) -> Response:
    """Replace a person's live fields.

    Raises:
        HTTPException: 400 if the path id and payload id differ
        HTTPException: 404 if the person does not exist
        HTTPException: 429 if the person was updated too recently (Retry-After set)
    """
    logger.info(f"PUT /api/Persons/{person_id}")
    if person.id != person_id:
        logger.warning(f"Path id ({person_id}) does not match payload id ({person.id})")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Path id does not match payload id")

    with get_session() as session:
        store = PersonStore(session)
        existing = store.find_by_id(person_id)
        outcome = NotFound(person_id) if existing is None else _manager(store, clock).revise_record(existing, person)

    if isinstance(outcome, Throttled):
        seconds = outcome.seconds_remaining
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Updated too frequently. Retry in {seconds} seconds.",
            headers={"Retry-After": str(seconds)},
        )
    if isinstance(outcome, NotFound):
        logger.warning(f"Person {person_id} not found, cannot update")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Person {person_id} not found")

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_person(person_id: int) -> Response:
    logger.info(f"DELETE /api/Persons/{person_id}")
    with get_session() as session:
        removed = PersonStore(session).remove(person_id)
    if not removed:
        logger.warning(f"Person {person_id} not found, cannot delete")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Person {person_id} not found")

    logger.info(f"Deleted person {person_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/BulkDelete", status_code=status.HTTP_204_NO_CONTENT)
def bulk_delete_persons(person_ids: list[int] = Body(...)) -> Response:
    """Delete every listed person in one transaction.

    Unknown ids are skipped; 404 only when none of the ids exist.
    """
    logger.info(f"POST /api/Persons/BulkDelete count={len(person_ids)}")
    if not person_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No ids provided")

    with get_session() as session:
        removed = PersonStore(session).remove_many(person_ids)
    if removed == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="None of the given persons exist")

    logger.info(f"Bulk deleted {removed} of {len(person_ids)} persons")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
