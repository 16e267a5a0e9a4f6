"""
Walkthrough Runner CLI.

Usage:
    python -m person_store.run_walkthrough demo    # Run every scenario in order
    python -m person_store.run_walkthrough seed    # Insert the sample people
"""

import asyncio
import sys
from typing import Dict, List

import structlog

from .config import settings
from .database import open_connection
from .logging_config import setup_logging
from .repositories.mongo_repository import MongoPersonRepository
from .services.person_service import PersonService

logger = structlog.get_logger(__name__)


async def run_demo(service: PersonService) -> Dict[str, object]:
    """Run the scenarios against the store and collect their results."""
    results: Dict[str, object] = {}

    jane = await service.create_and_save_person()
    results["create_and_save_person"] = jane
    results["create_many_people"] = await service.create_many_people()
    results["find_people_by_name"] = await service.find_people_by_name(jane.name)
    results["find_one_by_food"] = await service.find_one_by_food("fish")
    results["find_person_by_id"] = await service.find_person_by_id(jane.id)
    results["find_edit_then_save"] = await service.find_edit_then_save(jane.id)
    results["find_and_update"] = await service.find_and_update("Sol")
    results["remove_by_id"] = await service.remove_by_id(jane.id)
    results["remove_many_people"] = await service.remove_many_people()
    results["query_chain"] = await service.query_chain()

    for scenario, outcome in results.items():
        logger.info("Scenario finished", scenario=scenario, result=repr(outcome))
    return results


async def run_seed(service: PersonService) -> List[object]:
    people = await service.create_many_people()
    logger.info("Seeded people", count=len(people))
    return people


async def main(command: str) -> None:
    setup_logging(
        log_level=settings.LOG_LEVEL,
        service_name=settings.SERVICE_NAME,
        use_json=settings.LOG_JSON,
    )
    async with await open_connection() as connection:
        repository = MongoPersonRepository(connection.collection(settings.PERSON_COLLECTION))
        service = PersonService(repository)
        if command == "demo":
            await run_demo(service)
        elif command == "seed":
            await run_seed(service)
        else:
            raise ValueError(f"Unknown command: {command}")


def print_usage():
    print(__doc__)


if __name__ == "__main__":
    if len(sys.argv) != 2 or sys.argv[1].lower() not in ("demo", "seed"):
        print_usage()
        sys.exit(1)

    asyncio.run(main(sys.argv[1].lower()))
