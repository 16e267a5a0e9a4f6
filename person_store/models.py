"""Pydantic models for request/response validation."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .domain.entities import Person


class PersonCreate(BaseModel):
    """Request model for creating a person."""

    name: str = Field(..., min_length=1, description="Person name")
    age: Optional[int] = Field(None, ge=0, description="Age in years")
    favoriteFoods: List[str] = Field(default_factory=list, description="Ordered favorite foods")

    def to_entity(self) -> Person:
        return Person(name=self.name, age=self.age, favorite_foods=list(self.favoriteFoods))


class PersonResponse(BaseModel):
    """Person response model."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "665f1c2e9b1e8a3d4c5b6a79",
                "name": "Jane Fonda",
                "age": 84,
                "favoriteFoods": ["eggs", "fish", "fresh fruit"],
            }
        }
    )

    id: Optional[str] = None
    name: Optional[str] = None
    age: Optional[int] = None
    favoriteFoods: List[str] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, person: Person) -> "PersonResponse":
        return cls(
            id=person.id,
            name=person.name,
            age=person.age,
            favoriteFoods=list(person.favorite_foods),
        )


class PersonPatch(BaseModel):
    """Request model for an atomic field update."""

    name: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=0)
    favoriteFoods: Optional[List[str]] = None


class FavoriteFoodAdd(BaseModel):
    """Request model for appending a favorite food."""

    food: str = Field(..., min_length=1)


class PersonQueryRequest(BaseModel):
    """Request model for a chained query."""

    filter: Dict[str, Any] = Field(default_factory=dict)
    sort: List[str] = Field(default_factory=list, description="Field names, '-' prefix for descending")
    limit: Optional[int] = Field(None, ge=0)
    projection: Optional[Dict[str, int]] = Field(None, description="e.g. {\"age\": 0}")


class DeleteSummaryResponse(BaseModel):
    """Bulk delete outcome."""

    deleted_count: int


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str
    error_code: Optional[str] = None
