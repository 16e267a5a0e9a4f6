"""
MongoDB implementation of the person repository.

Runs every operation against a pymongo async collection. Driver errors are
wrapped in StoreException and re-raised; nothing is retried here.
"""

import time
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence

import structlog
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import BulkWriteError, PyMongoError

from ..domain.entities import (
    Person,
    resolve_field,
    validate_field_value,
    validate_person,
)
from ..domain.exceptions import InvalidIdException, StoreException, ValidationException
from ..metrics import track_store_operation
from .person_query import PersonQuery, QuerySpec
from .person_repository import DeleteSummary, IPersonRepository, Mutation

logger = structlog.get_logger(__name__)

LOGICAL_OPERATORS = frozenset({"$and", "$or", "$nor"})
ID_LIST_OPERATORS = frozenset({"$in", "$nin"})
ID_VALUE_OPERATORS = frozenset({"$eq", "$ne", "$gt", "$gte", "$lt", "$lte"})


def to_object_id(person_id: Any) -> ObjectId:
    """
    Convert a person id to the store's identifier type.

    Raises:
        InvalidIdException: If person_id is not a 24 character hex string
    """
    if isinstance(person_id, ObjectId):
        return person_id
    if isinstance(person_id, str) and ObjectId.is_valid(person_id):
        return ObjectId(person_id)
    raise InvalidIdException(person_id)


def normalize_id_condition(condition: Any) -> Any:
    """
    Convert the id operands of an ``_id`` condition to ObjectId.

    Accepts a plain id or an operator document such as
    ``{"$in": [...]}`` or ``{"$ne": "..."}``.
    """
    if not isinstance(condition, Mapping):
        return to_object_id(condition)

    normalized: Dict[str, Any] = {}
    for operator, operand in condition.items():
        if operator in ID_LIST_OPERATORS:
            if isinstance(operand, (str, bytes)) or not isinstance(operand, Sequence):
                raise ValidationException("_id", operand, f"{operator} needs a list of ids")
            normalized[operator] = [to_object_id(item) for item in operand]
        elif operator in ID_VALUE_OPERATORS:
            normalized[operator] = to_object_id(operand)
        else:
            normalized[operator] = operand
    return normalized


def field_query(field_name: str, value: Any) -> Dict[str, Any]:
    """
    Build an equality query on a single schema field.

    Raises:
        ValidationException: If field_name is not a schema field or value
            is an operator document
    """
    persisted = resolve_field(field_name)
    if persisted == "_id":
        return {"_id": to_object_id(value)}
    if isinstance(value, Mapping):
        raise ValidationException(persisted, value, "value must be a plain value")
    return {persisted: value}


def normalize_filter(filter: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Translate a filter to persisted keys.

    Python attribute names are mapped to document keys and id conditions are
    converted to ObjectId. ``$and``/``$or``/``$nor`` are normalized clause by
    clause; any other top level operator is rejected.
    """
    normalized: Dict[str, Any] = {}
    for key, value in (filter or {}).items():
        if isinstance(key, str) and key in LOGICAL_OPERATORS:
            if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
                raise ValidationException(key, value, f"{key} needs a list of filters")
            normalized[key] = [normalize_filter(clause) for clause in value]
            continue
        if isinstance(key, str) and key.startswith("$"):
            raise ValidationException(key, value, "unsupported filter operator")
        persisted = resolve_field(key)
        if persisted == "_id":
            value = normalize_id_condition(value)
        normalized[persisted] = value
    return normalized


class MongoPersonRepository(IPersonRepository):
    """MongoDB implementation for person persistence."""

    def __init__(self, collection: AsyncCollection):
        """
        Initialize repository.

        Args:
            collection: Async collection holding person documents
        """
        self.collection = collection

    @asynccontextmanager
    async def _store_call(self, operation: str) -> AsyncIterator[None]:
        """Time a driver call and translate driver errors."""
        start = time.perf_counter()
        success = False
        try:
            yield
            success = True
        except BulkWriteError as e:
            inserted = e.details.get("nInserted", 0)
            logger.error("Bulk write failed", operation=operation, inserted_count=inserted)
            raise StoreException(operation, str(e), inserted_count=inserted) from e
        except PyMongoError as e:
            logger.error("Store operation failed", operation=operation, error=str(e))
            raise StoreException(operation, str(e)) from e
        finally:
            track_store_operation(operation, success, time.perf_counter() - start)

    async def create(self, person: Person) -> Person:
        if isinstance(person, Person) and person.id is not None:
            raise ValidationException("id", person.id, "new records are assigned an id by the store")
        validate_person(person)

        async with self._store_call("create"):
            result = await self.collection.insert_one(person.to_document())

        stored = replace(person, favorite_foods=list(person.favorite_foods), id=str(result.inserted_id))
        logger.info("Person created", person_id=stored.id)
        return stored

    async def create_many(self, people: Sequence[Person]) -> List[Person]:
        people = list(people)
        for person in people:
            if isinstance(person, Person) and person.id is not None:
                raise ValidationException("id", person.id, "new records are assigned an id by the store")
            validate_person(person)
        if not people:
            return []

        async with self._store_call("create_many"):
            result = await self.collection.insert_many(
                [person.to_document() for person in people], ordered=True
            )

        stored = [
            replace(person, favorite_foods=list(person.favorite_foods), id=str(inserted_id))
            for person, inserted_id in zip(people, result.inserted_ids)
        ]
        logger.info("People created", count=len(stored))
        return stored

    async def find_by_field(self, field_name: str, value: Any) -> List[Person]:
        query = field_query(field_name, value)
        async with self._store_call("find"):
            documents = await self.collection.find(query).to_list(length=None)
        return [Person.from_document(document) for document in documents]

    async def find_one(self, field_name: str, value: Any) -> Optional[Person]:
        query = field_query(field_name, value)
        async with self._store_call("find_one"):
            document = await self.collection.find_one(query)
        return Person.from_document(document) if document else None

    async def find_by_id(self, person_id: str) -> Optional[Person]:
        object_id = to_object_id(person_id)
        async with self._store_call("find_by_id"):
            document = await self.collection.find_one({"_id": object_id})
        return Person.from_document(document) if document else None

    async def load_mutate_save(self, person_id: str, mutation: Mutation) -> Optional[Person]:
        """
        Load a person, apply mutation and save the result.

        The read and the write are separate round trips with nothing in
        between to detect a concurrent writer: the last save wins and earlier
        changes made by other callers are silently overwritten.
        """
        object_id = to_object_id(person_id)
        person = await self.find_by_id(object_id)
        if person is None:
            return None

        original_id = person.id
        mutated = mutation(person)
        if mutated is not None:
            person = mutated
        if person.id != original_id:
            raise ValidationException("id", person.id, "id is immutable")
        validate_person(person)

        async with self._store_call("save"):
            result = await self.collection.replace_one({"_id": object_id}, person.to_document())

        if result.matched_count == 0:
            logger.warning("Person vanished before save", person_id=original_id)
            return None
        logger.info("Person saved", person_id=original_id)
        return person

    async def find_and_update(
        self, filter: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> Optional[Person]:
        if not patch:
            raise ValidationException("patch", patch, "patch must set at least one field")

        to_set: Dict[str, Any] = {}
        to_unset: Dict[str, str] = {}
        for key, value in patch.items():
            persisted = resolve_field(key)
            validate_field_value(persisted, value)
            if value is None:
                to_unset[persisted] = ""
            else:
                to_set[persisted] = value

        update: Dict[str, Any] = {}
        if to_set:
            update["$set"] = to_set
        if to_unset:
            update["$unset"] = to_unset

        query = normalize_filter(filter)
        async with self._store_call("find_and_update"):
            document = await self.collection.find_one_and_update(
                query, update, return_document=ReturnDocument.AFTER
            )
        if document is None:
            return None
        updated = Person.from_document(document)
        logger.info("Person updated", person_id=updated.id, fields=sorted(update.get("$set", {})))
        return updated

    async def delete_by_id(self, person_id: str) -> Optional[Person]:
        object_id = to_object_id(person_id)
        async with self._store_call("delete_by_id"):
            document = await self.collection.find_one_and_delete({"_id": object_id})
        if document is None:
            return None
        logger.info("Person deleted", person_id=str(object_id))
        return Person.from_document(document)

    async def delete_by_field(self, field_name: str, value: Any) -> DeleteSummary:
        query = field_query(field_name, value)
        async with self._store_call("delete_many"):
            result = await self.collection.delete_many(query)
        logger.info("People deleted", field=field_name, deleted_count=result.deleted_count)
        return DeleteSummary(deleted_count=result.deleted_count)

    def query(self, filter: Optional[Mapping[str, Any]] = None) -> PersonQuery:
        return PersonQuery(self._run_query, QuerySpec(filter=normalize_filter(filter)))

    async def _run_query(self, spec: QuerySpec) -> List[Person]:
        async with self._store_call("query"):
            cursor = self.collection.find(spec.filter, spec.projection)
            if spec.sort:
                cursor = cursor.sort(list(spec.sort))
            if spec.limit:
                cursor = cursor.limit(spec.limit)
            documents = await cursor.to_list(length=None)
        return [Person.from_document(document) for document in documents]
