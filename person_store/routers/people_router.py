"""
People router.

Exposes the person repository over HTTP. Domain exceptions are turned into
responses by the handlers registered in ``person_store.main``.
"""

from typing import List, Set

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..domain.entities import resolve_field
from ..domain.exceptions import ValidationException
from ..models import (
    DeleteSummaryResponse,
    ErrorResponse,
    FavoriteFoodAdd,
    PersonCreate,
    PersonPatch,
    PersonQueryRequest,
    PersonResponse,
)
from ..dependencies import get_person_repository
from ..repositories.person_repository import IPersonRepository
from ..services.person_service import append_food

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/people", tags=["people"])

NOT_FOUND_RESPONSE = {404: {"description": "Person not found", "model": ErrorResponse}}

# Persisted key -> response field
RESPONSE_FIELDS = {"_id": "id", "name": "name", "age": "age", "favoriteFoods": "favoriteFoods"}


def _coerce_value(field: str, value: str):
    """Query string values are text; age lookups need an integer."""
    if resolve_field(field) == "age":
        try:
            return int(value)
        except ValueError:
            raise ValidationException("age", value, "age must be an integer") from None
    return value


def _visible_fields(projection) -> Set[str]:
    """Response fields left in a result by a projection."""
    if not projection:
        return set(RESPONSE_FIELDS.values())
    flags = {resolve_field(name): flag for name, flag in projection.items()}
    included = {name for name, flag in flags.items() if flag and name != "_id"}
    visible = included | {"_id"} if included else set(RESPONSE_FIELDS)
    visible -= {name for name, flag in flags.items() if not flag}
    return {RESPONSE_FIELDS[name] for name in visible}


def _not_found(person_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Person {person_id} not found",
    )


@router.post(
    "",
    response_model=PersonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a person",
)
async def create_person(
    payload: PersonCreate,
    repository: IPersonRepository = Depends(get_person_repository),
):
    person = await repository.create(payload.to_entity())
    return PersonResponse.from_entity(person)


@router.post(
    "/bulk",
    response_model=List[PersonResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create several people",
)
async def create_people(
    payload: List[PersonCreate],
    repository: IPersonRepository = Depends(get_person_repository),
):
    people = await repository.create_many([item.to_entity() for item in payload])
    return [PersonResponse.from_entity(person) for person in people]


@router.get("", response_model=List[PersonResponse], summary="Find people by field")
async def find_people(
    field: str = Query(..., description="Field to match, e.g. name or favoriteFoods"),
    value: str = Query(..., description="Value to match"),
    first: bool = Query(False, description="Return at most the first match"),
    repository: IPersonRepository = Depends(get_person_repository),
):
    coerced = _coerce_value(field, value)
    if first:
        person = await repository.find_one(field, coerced)
        people = [person] if person else []
    else:
        people = await repository.find_by_field(field, coerced)
    return [PersonResponse.from_entity(person) for person in people]


@router.get(
    "/{person_id}",
    response_model=PersonResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Get a person by id",
)
async def get_person(
    person_id: str,
    repository: IPersonRepository = Depends(get_person_repository),
):
    person = await repository.find_by_id(person_id)
    if person is None:
        raise _not_found(person_id)
    return PersonResponse.from_entity(person)


@router.post(
    "/{person_id}/favorite-foods",
    response_model=PersonResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Append a favorite food (read, edit, save)",
)
async def add_favorite_food(
    person_id: str,
    payload: FavoriteFoodAdd,
    repository: IPersonRepository = Depends(get_person_repository),
):
    person = await repository.load_mutate_save(person_id, append_food(payload.food))
    if person is None:
        raise _not_found(person_id)
    return PersonResponse.from_entity(person)


@router.patch(
    "",
    response_model=PersonResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Atomically update the first person with a name",
)
async def update_person_by_name(
    payload: PersonPatch,
    name: str = Query(..., min_length=1),
    repository: IPersonRepository = Depends(get_person_repository),
):
    patch = payload.model_dump(exclude_unset=True)
    person = await repository.find_and_update({"name": name}, patch)
    if person is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No person named {name}",
        )
    return PersonResponse.from_entity(person)


@router.delete(
    "/{person_id}",
    response_model=PersonResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Delete a person by id",
)
async def delete_person(
    person_id: str,
    repository: IPersonRepository = Depends(get_person_repository),
):
    person = await repository.delete_by_id(person_id)
    if person is None:
        raise _not_found(person_id)
    logger.info("Person removed via API", person_id=person_id)
    return PersonResponse.from_entity(person)


@router.delete("", response_model=DeleteSummaryResponse, summary="Delete people by field")
async def delete_people(
    field: str = Query(...),
    value: str = Query(...),
    repository: IPersonRepository = Depends(get_person_repository),
):
    summary = await repository.delete_by_field(field, _coerce_value(field, value))
    return DeleteSummaryResponse(deleted_count=summary.deleted_count)


@router.post(
    "/query",
    response_model=List[PersonResponse],
    response_model_exclude_unset=True,
    summary="Run a chained query",
)
async def query_people(
    payload: PersonQueryRequest,
    repository: IPersonRepository = Depends(get_person_repository),
):
    people = await repository.query_chain(
        payload.filter,
        sort=payload.sort,
        limit=payload.limit,
        projection=payload.projection,
    )
    visible = _visible_fields(payload.projection)
    return [
        PersonResponse(**PersonResponse.from_entity(person).model_dump(include=visible))
        for person in people
    ]
