"""
Person repository interface (Abstract Base Class).

Defines the contract for person persistence and retrieval
independent of the underlying document store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from ..domain.entities import Person
from .person_query import PersonQuery, SortKey

# A mutation edits the person in place; returning a Person replaces it.
Mutation = Callable[[Person], Optional[Person]]


@dataclass(frozen=True)
class DeleteSummary:
    """Outcome of a bulk delete."""

    deleted_count: int


class IPersonRepository(ABC):
    """
    Abstract repository interface for person records.

    Every method is a coroutine that suspends until the store replies.
    Absence is reported as ``None`` (or an empty list / zero count),
    never as an exception.
    """

    @abstractmethod
    async def create(self, person: Person) -> Person:
        """
        Validate and insert a new person.

        Args:
            person: Candidate person without an id

        Returns:
            Stored person with its assigned id

        Raises:
            ValidationException: If the candidate breaks the schema
            StoreException: If the store fails
        """
        pass

    @abstractmethod
    async def create_many(self, people: Sequence[Person]) -> List[Person]:
        """
        Insert several people.

        Every candidate is validated before anything is written, so one
        invalid record fails the whole call without side effects.

        Args:
            people: Candidates in the order they should be inserted

        Returns:
            Stored people in input order
        """
        pass

    @abstractmethod
    async def find_by_field(self, field_name: str, value: Any) -> List[Person]:
        """
        Find all people whose field matches value.

        Returns:
            Matches in the store's natural order, empty when none
        """
        pass

    @abstractmethod
    async def find_one(self, field_name: str, value: Any) -> Optional[Person]:
        """
        Find the first person whose field matches value.

        Returns:
            Person if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_id(self, person_id: str) -> Optional[Person]:
        """
        Find a person by id.

        Returns:
            Person if found, None otherwise

        Raises:
            InvalidIdException: If person_id is malformed
        """
        pass

    @abstractmethod
    async def load_mutate_save(self, person_id: str, mutation: Mutation) -> Optional[Person]:
        """
        Load a person, apply mutation and save the result.

        Not atomic: if two callers run this concurrently on the same id, the
        later save overwrites the earlier one's change (last write wins).
        Use ``find_and_update`` for flat field replacements.

        Returns:
            Updated person, or None if the person does not exist
        """
        pass

    @abstractmethod
    async def find_and_update(
        self, filter: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> Optional[Person]:
        """
        Atomically set patch fields on the first person matching filter.

        Returns:
            Person after the update, or None if nothing matched
        """
        pass

    @abstractmethod
    async def delete_by_id(self, person_id: str) -> Optional[Person]:
        """
        Delete a person by id.

        Returns:
            The removed person, or None if absent
        """
        pass

    @abstractmethod
    async def delete_by_field(self, field_name: str, value: Any) -> DeleteSummary:
        """
        Delete every person whose field matches value.

        Returns:
            Summary with the number of removed records
        """
        pass

    @abstractmethod
    def query(self, filter: Optional[Mapping[str, Any]] = None) -> PersonQuery:
        """
        Start a chained query.

        Returns:
            Unexecuted query; finalize with ``await query.exec()``
        """
        pass

    async def query_chain(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Sequence[SortKey] = (),
        limit: Optional[int] = None,
        projection: Optional[Union[Dict[str, Any], str]] = None,
    ) -> List[Person]:
        """
        Build and execute a chained query in one call.

        Args:
            filter: Match conditions
            sort: Sort keys, see ``PersonQuery.sort``
            limit: Maximum number of results
            projection: Fields to include or exclude

        Returns:
            Ordered, limited, projected matches
        """
        query = self.query(filter)
        if sort:
            query = query.sort(*sort)
        if limit is not None:
            query = query.limit(limit)
        if projection is not None:
            query = query.select(projection)
        return await query.exec()
