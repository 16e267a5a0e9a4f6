"""
Tests for the chained person query.

Covers:
- Immutability of modifiers
- Sort, limit and projection parsing
- building -> executed lifecycle
"""

from unittest.mock import AsyncMock

import pytest

from person_store.domain.entities import Person
from person_store.domain.exceptions import QueryAlreadyExecutedException, ValidationException
from person_store.repositories.person_query import (
    ASCENDING,
    DESCENDING,
    PersonQuery,
    QuerySpec,
)


@pytest.fixture
def executor():
    """Executor returning a fixed result."""
    return AsyncMock(return_value=[Person(name="Adam")])


@pytest.fixture
def query(executor):
    """Fresh query with a filter."""
    return PersonQuery(executor, QuerySpec(filter={"favoriteFoods": "burrito"}))


class TestModifiers:
    """Test builder modifiers."""

    def test_modifiers_return_new_query(self, query):
        """Test the original query is left untouched."""
        sorted_query = query.sort("name")
        assert sorted_query is not query
        assert query.spec.sort == ()
        assert sorted_query.spec.sort == (("name", ASCENDING),)
        assert sorted_query.spec.filter == {"favoriteFoods": "burrito"}

    def test_sort_descending_prefix(self, query):
        """Test '-' prefix sorts descending."""
        assert query.sort("-age").spec.sort == (("age", DESCENDING),)

    def test_sort_tuple_and_alias(self, query):
        """Test tuple keys and Python aliases."""
        spec = query.sort(("favorite_foods", DESCENDING)).spec
        assert spec.sort == (("favoriteFoods", DESCENDING),)

    def test_sort_accumulates(self, query):
        """Test chained sorts keep earlier keys first."""
        spec = query.sort("name").sort("-age").spec
        assert spec.sort == (("name", ASCENDING), ("age", DESCENDING))

    def test_sort_bad_direction(self, query):
        """Test invalid sort directions are rejected."""
        with pytest.raises(ValidationException):
            query.sort(("name", 2))

    def test_sort_unknown_field(self, query):
        """Test sorting on a field outside the schema."""
        with pytest.raises(ValidationException):
            query.sort("email")

    def test_limit(self, query):
        """Test limit is recorded."""
        assert query.limit(2).spec.limit == 2

    @pytest.mark.parametrize("count", [-1, 1.5, True, "2"])
    def test_limit_invalid(self, query, count):
        """Test invalid limits are rejected."""
        with pytest.raises(ValidationException):
            query.limit(count)

    def test_select_mapping(self, query):
        """Test mapping projections."""
        assert query.select({"age": 0}).spec.projection == {"age": 0}

    def test_select_string(self, query):
        """Test string projections with exclusion prefix."""
        assert query.select("-age -favorite_foods").spec.projection == {
            "age": 0,
            "favoriteFoods": 0,
        }

    def test_select_inclusion_with_id_excluded(self, query):
        """Test _id may be excluded alongside inclusions."""
        projection = query.select({"name": 1, "_id": 0}).spec.projection
        assert projection == {"name": 1, "_id": 0}

    def test_select_mixed_modes_rejected(self, query):
        """Test inclusion and exclusion cannot be mixed."""
        with pytest.raises(ValidationException, match="cannot mix"):
            query.select({"name": 1, "age": 0})


class TestExecution:
    """Test query finalization."""

    @pytest.mark.asyncio
    async def test_exec_passes_spec(self, query, executor):
        """Test exec hands the accumulated spec to the executor."""
        final = query.sort("name").limit(2).select({"age": 0})
        result = await final.exec()

        assert result == [Person(name="Adam")]
        executor.assert_awaited_once_with(
            QuerySpec(
                filter={"favoriteFoods": "burrito"},
                sort=(("name", ASCENDING),),
                limit=2,
                projection={"age": 0},
            )
        )

    def test_nothing_runs_before_exec(self, query, executor):
        """Test building never touches the store."""
        query.sort("name").limit(1)
        executor.assert_not_called()

    @pytest.mark.asyncio
    async def test_state_transitions(self, query):
        """Test building -> executed."""
        assert query.state == "building"
        await query.exec()
        assert query.state == "executed"

    @pytest.mark.asyncio
    async def test_cannot_exec_twice(self, query):
        """Test re-execution is refused."""
        await query.exec()
        with pytest.raises(QueryAlreadyExecutedException):
            await query.exec()

    @pytest.mark.asyncio
    async def test_cannot_modify_after_exec(self, query):
        """Test executed queries cannot be extended."""
        await query.exec()
        with pytest.raises(QueryAlreadyExecutedException):
            query.limit(1)

    @pytest.mark.asyncio
    async def test_derived_query_independent(self, query, executor):
        """Test executing a derived query leaves the parent buildable."""
        await query.limit(1).exec()
        assert query.state == "building"
        await query.exec()
        assert executor.await_count == 2
