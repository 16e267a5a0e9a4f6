"""
Unit tests for domain entities.

Tests for Person, document mapping and write-time validation.
"""

import pytest
from bson import ObjectId

from person_store.domain.entities import (
    Person,
    resolve_field,
    validate_field_value,
    validate_person,
)
from person_store.domain.exceptions import ValidationException


class TestPerson:
    """Tests for the Person entity."""

    def test_defaults(self):
        """Test optional fields default to empty."""
        person = Person(name="Sol")
        assert person.age is None
        assert person.favorite_foods == []
        assert person.id is None

    def test_favorite_foods_not_shared(self):
        """Test each person gets its own list."""
        a = Person(name="A")
        b = Person(name="B")
        a.favorite_foods.append("wine")
        assert b.favorite_foods == []

    def test_to_document_layout(self):
        """Test persisted keys match the schema."""
        person = Person(name="Frankie", age=74, favorite_foods=["Del Taco"])
        assert person.to_document() == {
            "name": "Frankie",
            "age": 74,
            "favoriteFoods": ["Del Taco"],
        }

    def test_to_document_omits_missing_age(self):
        """Test age is absent rather than null when unset."""
        document = Person(name="Robert").to_document()
        assert "age" not in document
        assert "_id" not in document

    def test_to_document_copies_foods(self):
        """Test the document does not alias the entity's list."""
        person = Person(name="Robert", favorite_foods=["wine"])
        document = person.to_document()
        document["favoriteFoods"].append("cheese")
        assert person.favorite_foods == ["wine"]

    def test_from_document(self):
        """Test mapping a stored document back to a person."""
        object_id = ObjectId()
        person = Person.from_document(
            {"_id": object_id, "name": "Sol", "age": 76, "favoriteFoods": ["roast chicken"]}
        )
        assert person.id == str(object_id)
        assert person.name == "Sol"
        assert person.age == 76
        assert person.favorite_foods == ["roast chicken"]

    def test_from_projected_document(self):
        """Test missing keys from a projection become defaults."""
        person = Person.from_document({"name": "Sol"})
        assert person.id is None
        assert person.age is None
        assert person.favorite_foods == []

    def test_food_order_preserved(self):
        """Test favorite foods keep their order both ways."""
        foods = ["zucchini", "apple", "mango"]
        person = Person.from_document(Person(name="X", favorite_foods=foods).to_document())
        assert person.favorite_foods == foods


class TestResolveField:
    """Tests for field name resolution."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("id", "_id"),
            ("_id", "_id"),
            ("name", "name"),
            ("favorite_foods", "favoriteFoods"),
            ("favoriteFoods", "favoriteFoods"),
        ],
    )
    def test_known_fields(self, name, expected):
        """Test aliases resolve to persisted keys."""
        assert resolve_field(name) == expected

    def test_unknown_field(self):
        """Test unknown fields are rejected."""
        with pytest.raises(ValidationException, match="unknown field"):
            resolve_field("email")


class TestValidation:
    """Tests for write-time validation."""

    def test_valid_person(self, jane):
        """Test a complete person passes."""
        validate_person(jane)

    def test_name_only_is_valid(self):
        """Test age and foods are optional."""
        validate_person(Person(name="Mary"))

    @pytest.mark.parametrize("name", [None, "", "   ", 42])
    def test_name_required(self, name):
        """Test missing or blank names are rejected."""
        with pytest.raises(ValidationException, match="name is required"):
            validate_person(Person(name=name))

    @pytest.mark.parametrize("age", ["84", 84.5, True])
    def test_age_must_be_integer(self, age):
        """Test non-integer ages are rejected."""
        with pytest.raises(ValidationException, match="age must be an integer"):
            validate_person(Person(name="Jane", age=age))

    def test_foods_must_be_strings(self):
        """Test non-string foods are rejected."""
        with pytest.raises(ValidationException, match="list of strings"):
            validate_person(Person(name="Jane", favorite_foods=["eggs", 3]))

    def test_rejects_non_person(self):
        """Test plain dicts are not accepted."""
        with pytest.raises(ValidationException):
            validate_person({"name": "Jane"})

    def test_id_field_not_writable(self):
        """Test patches cannot change the id."""
        with pytest.raises(ValidationException, match="immutable"):
            validate_field_value("_id", "abc")
