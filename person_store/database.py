"""
Document store connection management.

The connection is an explicitly constructed object owned by the caller
(the API lifespan, a script, or a test) and passed into repositories.
"""

from typing import Any, Optional

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from .config import settings
from .domain.exceptions import StoreConnectionException, StoreException

logger = structlog.get_logger(__name__)


def sanitize_uri(uri: str) -> str:
    """
    Strip credentials from a connection URI for logging.

    Args:
        uri: Store connection URI

    Returns:
        URI safe to log
    """
    if "@" in uri:
        scheme, _, rest = uri.partition("://")
        return f"{scheme}://...@{rest.split('@', 1)[1]}"
    return uri


class MongoConnection:
    """
    An open connection to a MongoDB database.

    Example:
        async with await MongoConnection.connect(uri, "person_store") as conn:
            repo = MongoPersonRepository(conn.collection("people"))
    """

    def __init__(self, client: AsyncMongoClient, database: str):
        """
        Wrap an already constructed client.

        Args:
            client: pymongo async client
            database: Name of the database holding the collections
        """
        self.client = client
        self.database_name = database
        self._closed = False

    @classmethod
    async def connect(cls, uri: str, database: str, **options: Any) -> "MongoConnection":
        """
        Open a connection and verify the server is reachable.

        Args:
            uri: MongoDB connection URI
            database: Database name
            **options: Extra keyword arguments for ``AsyncMongoClient``

        Returns:
            Open connection

        Raises:
            StoreConnectionException: If the server cannot be reached
        """
        safe_uri = sanitize_uri(uri)
        logger.info("Connecting to document store", uri=safe_uri, database=database)
        try:
            client = AsyncMongoClient(uri, **options)
        except (PyMongoError, ValueError) as e:
            raise StoreConnectionException(safe_uri, str(e)) from e

        connection = cls(client, database)
        try:
            await connection.ping()
        except StoreException as e:
            await client.close()
            raise StoreConnectionException(safe_uri, e.details.get("reason")) from e

        logger.info("Document store connected", uri=safe_uri, database=database)
        return connection

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def database(self) -> AsyncDatabase:
        return self.client[self.database_name]

    def collection(self, name: str) -> AsyncCollection:
        """Return the named collection of the connected database."""
        if self._closed:
            raise StoreException("collection", "connection is closed", collection=name)
        return self.database[name]

    async def ping(self) -> None:
        """
        Round-trip to the server.

        Raises:
            StoreException: If the server does not answer
        """
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            raise StoreException("ping", str(e)) from e

    async def close(self) -> None:
        """Close the underlying client. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self.client.close()
        logger.info("Document store connection closed", database=self.database_name)

    async def __aenter__(self) -> "MongoConnection":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def open_connection(
    uri: Optional[str] = None, database: Optional[str] = None
) -> MongoConnection:
    """
    Open a connection using application settings for anything not given.

    Args:
        uri: Override for ``MONGO_URI``
        database: Override for ``MONGO_DATABASE``

    Returns:
        Open connection
    """
    return await MongoConnection.connect(
        uri or settings.MONGO_URI,
        database or settings.MONGO_DATABASE,
        **settings.mongo_client_options,
    )
