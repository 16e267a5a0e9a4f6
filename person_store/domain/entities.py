"""
Domain entities for person records.

Core business objects representing people and their stored documents.
These entities are framework-agnostic; validation runs at write time.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ValidationException

# Persisted document keys, keyed by every accepted spelling.
FIELD_ALIASES: Dict[str, str] = {
    "id": "_id",
    "_id": "_id",
    "name": "name",
    "age": "age",
    "favoriteFoods": "favoriteFoods",
    "favorite_foods": "favoriteFoods",
}

PERSISTED_FIELDS = ("_id", "name", "age", "favoriteFoods")


def resolve_field(field_name: str) -> str:
    """
    Map a field name to its persisted document key.

    Args:
        field_name: Persisted key or Python attribute name

    Returns:
        The persisted key

    Raises:
        ValidationException: If the field is not part of the schema
    """
    try:
        return FIELD_ALIASES[field_name]
    except (KeyError, TypeError):
        raise ValidationException(
            field=str(field_name), value=field_name, reason="unknown field"
        ) from None


@dataclass
class Person:
    """
    A person record.

    ``id`` is assigned by the store on creation and never changes afterwards.
    ``favorite_foods`` keeps insertion order and is persisted as ``favoriteFoods``.
    """

    name: Optional[str]
    age: Optional[int] = None
    favorite_foods: List[str] = field(default_factory=list)
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        """Build the persisted document, without ``_id``."""
        document: Dict[str, Any] = {"name": self.name}
        if self.age is not None:
            document["age"] = self.age
        document["favoriteFoods"] = list(self.favorite_foods)
        return document

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Person":
        """Build a person from a stored (possibly projected) document."""
        raw_id = document.get("_id")
        return cls(
            name=document.get("name"),
            age=document.get("age"),
            favorite_foods=list(document.get("favoriteFoods") or []),
            id=str(raw_id) if raw_id is not None else None,
        )


def validate_field_value(key: str, value: Any) -> None:
    """
    Check a single persisted field against the schema.

    Raises:
        ValidationException: If the value does not conform
    """
    if key == "name":
        if not isinstance(value, str) or not value.strip():
            raise ValidationException("name", value, "name is required")
    elif key == "age":
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise ValidationException("age", value, "age must be an integer")
    elif key == "favoriteFoods":
        if not isinstance(value, list) or not all(isinstance(f, str) for f in value):
            raise ValidationException(
                "favoriteFoods", value, "favoriteFoods must be a list of strings"
            )
    elif key == "_id":
        raise ValidationException("_id", value, "id is immutable")
    else:
        raise ValidationException(key, value, "unknown field")


def validate_person(person: Person) -> None:
    """
    Validate a person before it is written.

    Raises:
        ValidationException: If a required field is missing or a type is wrong
    """
    if not isinstance(person, Person):
        raise ValidationException("person", person, "expected a Person")
    validate_field_value("name", person.name)
    validate_field_value("age", person.age)
    validate_field_value("favoriteFoods", person.favorite_foods)
