"""
Person service layer.

The classic document-store walkthrough: save one record, seed several,
look people up, edit them both ways, remove them and run a chained query.
Each scenario is a single repository call.
"""

from typing import List, Optional, Sequence

import structlog

from ..domain.entities import Person
from ..repositories.person_repository import DeleteSummary, IPersonRepository

logger = structlog.get_logger(__name__)

SAMPLE_PEOPLE = (
    Person(name="Frankie", age=74, favorite_foods=["Del Taco"]),
    Person(name="Sol", age=76, favorite_foods=["roast chicken"]),
    Person(name="Robert", age=78, favorite_foods=["wine"]),
)

FOOD_TO_ADD = "hamburger"
AGE_TO_SET = 20
NAME_TO_REMOVE = "Mary"
FOOD_TO_SEARCH = "burrito"


def append_food(food: str):
    """Build a mutation appending food to a person's favorites."""

    def mutate(person: Person) -> None:
        person.favorite_foods.append(food)

    return mutate


class PersonService:
    """Scenario service over a person repository."""

    def __init__(self, repository: IPersonRepository):
        self.repository = repository

    async def create_and_save_person(self) -> Person:
        person = Person(
            name="Jane Fonda", age=84, favorite_foods=["eggs", "fish", "fresh fruit"]
        )
        return await self.repository.create(person)

    async def create_many_people(
        self, people: Optional[Sequence[Person]] = None
    ) -> List[Person]:
        if people is None:
            people = [
                Person(name=p.name, age=p.age, favorite_foods=list(p.favorite_foods))
                for p in SAMPLE_PEOPLE
            ]
        return await self.repository.create_many(people)

    async def find_people_by_name(self, person_name: str) -> List[Person]:
        return await self.repository.find_by_field("name", person_name)

    async def find_one_by_food(self, food: str) -> Optional[Person]:
        return await self.repository.find_one("favoriteFoods", food)

    async def find_person_by_id(self, person_id: str) -> Optional[Person]:
        return await self.repository.find_by_id(person_id)

    async def find_edit_then_save(self, person_id: str) -> Optional[Person]:
        """Append a hamburger to the person's favorite foods (read, edit, save)."""
        return await self.repository.load_mutate_save(person_id, append_food(FOOD_TO_ADD))

    async def find_and_update(self, person_name: str) -> Optional[Person]:
        """Set the first person with this name to age 20 in one atomic update."""
        return await self.repository.find_and_update(
            {"name": person_name}, {"age": AGE_TO_SET}
        )

    async def remove_by_id(self, person_id: str) -> Optional[Person]:
        return await self.repository.delete_by_id(person_id)

    async def remove_many_people(self) -> DeleteSummary:
        summary = await self.repository.delete_by_field("name", NAME_TO_REMOVE)
        logger.info("Removed people by name", name=NAME_TO_REMOVE, deleted_count=summary.deleted_count)
        return summary

    async def query_chain(self) -> List[Person]:
        """Two burrito lovers, sorted by name, without their age."""
        return await (
            self.repository.query({"favoriteFoods": FOOD_TO_SEARCH})
            .sort("name")
            .limit(2)
            .select({"age": 0})
            .exec()
        )
