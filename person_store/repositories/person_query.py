"""
Chained person query.

A ``PersonQuery`` is an immutable description of a find: filter, sort keys,
limit and projection. Every modifier returns a new query; nothing reaches the
store until ``exec()`` is awaited, and a query can be executed only once.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..domain.entities import Person, resolve_field
from ..domain.exceptions import QueryAlreadyExecutedException, ValidationException

ASCENDING = 1
DESCENDING = -1

SortKey = Union[str, Tuple[str, int]]

BUILDING = "building"
EXECUTED = "executed"


@dataclass(frozen=True)
class QuerySpec:
    """Everything the store needs to run a query."""

    filter: Dict[str, Any] = field(default_factory=dict)
    sort: Tuple[Tuple[str, int], ...] = ()
    limit: Optional[int] = None
    projection: Optional[Dict[str, int]] = None


QueryExecutor = Callable[[QuerySpec], Awaitable[List[Person]]]


def _parse_sort_key(key: SortKey) -> Tuple[str, int]:
    if isinstance(key, tuple):
        name, direction = key
        if direction not in (ASCENDING, DESCENDING):
            raise ValidationException("sort", key, "direction must be 1 or -1")
        return resolve_field(name), direction
    if isinstance(key, str) and key.startswith("-"):
        return resolve_field(key[1:]), DESCENDING
    return resolve_field(key), ASCENDING


def _parse_projection(projection: Union[Mapping[str, Any], str]) -> Dict[str, int]:
    if isinstance(projection, str):
        parsed = {}
        for token in projection.split():
            if token.startswith("-"):
                parsed[resolve_field(token[1:])] = 0
            else:
                parsed[resolve_field(token)] = 1
    else:
        parsed = {resolve_field(name): 1 if flag else 0 for name, flag in projection.items()}

    # MongoDB only allows mixing inclusion and exclusion for _id.
    modes = {flag for name, flag in parsed.items() if name != "_id"}
    if len(modes) > 1:
        raise ValidationException(
            "projection", projection, "cannot mix inclusion and exclusion"
        )
    return parsed


class PersonQuery:
    """
    Immutable, lazily executed query over the person collection.

    Example:
        people = await (
            repo.query({"favoriteFoods": "burrito"})
            .sort("name")
            .limit(2)
            .select({"age": 0})
            .exec()
        )
    """

    def __init__(self, executor: QueryExecutor, spec: Optional[QuerySpec] = None):
        self._executor = executor
        self._spec = spec or QuerySpec()
        self._executed = False

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    @property
    def state(self) -> str:
        return EXECUTED if self._executed else BUILDING

    def _derive(self, **changes: Any) -> "PersonQuery":
        if self._executed:
            raise QueryAlreadyExecutedException()
        return PersonQuery(self._executor, replace(self._spec, **changes))

    def sort(self, *keys: SortKey) -> "PersonQuery":
        """
        Add sort keys.

        Args:
            *keys: Field names (``"-name"`` for descending) or
                ``(field, direction)`` tuples

        Returns:
            New query with the keys appended
        """
        parsed = tuple(_parse_sort_key(key) for key in keys)
        return self._derive(sort=self._spec.sort + parsed)

    def limit(self, count: int) -> "PersonQuery":
        """Return a new query capped at ``count`` results (0 means no cap)."""
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValidationException("limit", count, "limit must be a non-negative integer")
        return self._derive(limit=count)

    def select(self, projection: Union[Mapping[str, Any], str]) -> "PersonQuery":
        """
        Restrict the returned fields.

        Args:
            projection: ``{"age": 0}`` style mapping, or a space separated
                string such as ``"-age"`` or ``"name favoriteFoods"``

        Returns:
            New query with the projection set
        """
        return self._derive(projection=_parse_projection(projection))

    async def exec(self) -> List[Person]:
        """
        Run the query.

        Returns:
            Matching people, ordered, limited and projected

        Raises:
            QueryAlreadyExecutedException: If this query already ran
        """
        if self._executed:
            raise QueryAlreadyExecutedException()
        self._executed = True
        return await self._executor(self._spec)

    def __repr__(self) -> str:
        return f"PersonQuery(state={self.state!r}, spec={self._spec!r})"
