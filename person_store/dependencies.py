"""
Shared dependencies for the application.

Provides dependency injection functions used across routers. The
repository lives on ``app.state`` and is installed by the app lifespan.
"""

from fastapi import Request

from .repositories.person_repository import IPersonRepository


async def get_person_repository(request: Request) -> IPersonRepository:
    """
    Get the person repository for dependency injection.

    Raises:
        RuntimeError: If the application has not finished starting
    """
    repository = getattr(request.app.state, "person_repository", None)
    if repository is None:
        raise RuntimeError("Person repository not initialized")
    return repository

