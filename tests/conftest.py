"""
Test configuration and fixtures.

``FakeCollection`` keeps documents in memory and answers the subset of the
pymongo async collection API the repository uses, with MongoDB equality
semantics (array fields match on membership).
"""

import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo import ReturnDocument

from person_store.domain.entities import Person
from person_store.repositories.mongo_repository import MongoPersonRepository
from person_store.services.person_service import PersonService


def _matches(document, query):
    for key, expected in query.items():
        actual = document.get(key)
        if isinstance(actual, list) and not isinstance(expected, list):
            if expected not in actual:
                return False
        elif actual != expected:
            return False
    return True


def _project(document, projection):
    if not projection:
        return document
    include_id = projection.get("_id", 1)
    fields = {k: v for k, v in projection.items() if k != "_id"}
    if fields and all(fields.values()):
        projected = {k: document[k] for k in fields if k in document}
        if include_id:
            projected["_id"] = document["_id"]
        return projected
    projected = {k: v for k, v in document.items() if k not in fields}
    if not include_id:
        projected.pop("_id", None)
    return projected


class FakeCursor:
    """Cursor over a snapshot of matching documents."""

    def __init__(self, documents, projection=None):
        self._documents = documents
        self._projection = projection
        self._sort = []
        self._limit = 0

    def sort(self, keys):
        self._sort = list(keys)
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        documents = list(self._documents)
        for key, direction in reversed(self._sort):
            documents.sort(key=lambda d: d.get(key), reverse=direction == -1)
        if self._limit:
            documents = documents[: self._limit]
        return [_project(copy.deepcopy(d), self._projection) for d in documents]


class FakeCollection:
    """In-memory stand-in for ``AsyncCollection``."""

    def __init__(self):
        self.documents = []

    def _matching(self, query):
        return [d for d in self.documents if _matches(d, query)]

    async def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def insert_many(self, documents, ordered=True):
        inserted_ids = []
        for document in documents:
            result = await self.insert_one(document)
            inserted_ids.append(result.inserted_id)
        return SimpleNamespace(inserted_ids=inserted_ids)

    def find(self, query=None, projection=None):
        return FakeCursor(self._matching(query or {}), projection)

    async def find_one(self, query=None):
        matches = self._matching(query or {})
        return copy.deepcopy(matches[0]) if matches else None

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        matches = self._matching(query)
        if not matches:
            return None
        document = matches[0]
        before = copy.deepcopy(document)
        document.update(copy.deepcopy(update.get("$set", {})))
        for key in update.get("$unset", {}):
            document.pop(key, None)
        return copy.deepcopy(document) if return_document == ReturnDocument.AFTER else before

    async def replace_one(self, query, replacement):
        matches = self._matching(query)
        if not matches:
            return SimpleNamespace(matched_count=0, modified_count=0)
        document = matches[0]
        object_id = document["_id"]
        document.clear()
        document.update(copy.deepcopy(replacement))
        document["_id"] = object_id
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def find_one_and_delete(self, query):
        matches = self._matching(query)
        if not matches:
            return None
        self.documents.remove(matches[0])
        return copy.deepcopy(matches[0])

    async def delete_many(self, query):
        matches = self._matching(query)
        for document in matches:
            self.documents.remove(document)
        return SimpleNamespace(deleted_count=len(matches))


@pytest.fixture
def fake_collection():
    """Empty in-memory collection."""
    return FakeCollection()


@pytest.fixture
def repository(fake_collection):
    """Repository backed by the in-memory collection."""
    return MongoPersonRepository(fake_collection)


@pytest.fixture
def service(repository):
    """Scenario service backed by the in-memory repository."""
    return PersonService(repository)


@pytest.fixture
def jane():
    """Candidate person used across tests."""
    return Person(name="Jane Fonda", age=84, favorite_foods=["eggs", "fish", "fresh fruit"])


@pytest.fixture
def burrito_people():
    """Candidates with overlapping favorite foods."""
    return [
        Person(name="Zoe", age=30, favorite_foods=["burrito", "sushi"]),
        Person(name="Adam", age=41, favorite_foods=["burrito"]),
        Person(name="Mia", age=25, favorite_foods=["pizza"]),
        Person(name="Carl", age=52, favorite_foods=["tacos", "burrito"]),
    ]
