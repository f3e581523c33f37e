"""
Cosmos DB connection and item API integration.
"""

import logging
from typing import Any, AsyncIterator, Callable, NamedTuple, Optional

from azure.cosmos import PartitionKey
from azure.cosmos import exceptions as cosmos_exceptions
from azure.cosmos.aio import CosmosClient

from .config import ConfigManager
from .exceptions import (
    ConfigurationError,
    ThroughputUnsupportedError,
    translate_cosmos_error,
)
from .models import Family
from .queries import QuerySpec

logger = logging.getLogger(__name__)

REQUEST_CHARGE_HEADER = "x-ms-request-charge"


class ItemResponse(NamedTuple):
    item: Family
    request_charge: Optional[float]


class _ChargeRecorder:
    """``response_hook`` that captures the request charge of one call."""

    def __init__(self):
        self.request_charge: Optional[float] = None

    def __call__(self, headers: Any, *args: Any) -> None:
        charge = headers.get(REQUEST_CHARGE_HEADER) if headers else None
        if charge is not None:
            self.request_charge = float(charge)


class CosmosDBConnection:
    """Manages the Cosmos DB client and the selected database and container.

    Use as an async context manager; the client is closed exactly once on exit,
    whether the body finished or raised.
    """

    def __init__(self, endpoint: str, key: str,
                 application_name: str = "CosmosDBPythonQuickstart",
                 client_factory: Optional[Callable[..., Any]] = None,
                 **client_options):
        if not endpoint:
            raise ConfigurationError("Cosmos DB endpoint is required")
        if not key:
            raise ConfigurationError("Cosmos DB key is required")

        self.endpoint = endpoint
        self.key = key
        self.client_options = {"user_agent": application_name, **client_options}
        self._client_factory = client_factory or CosmosClient
        self.client: Any = None
        self.database: Any = None
        self.container: Any = None
        self.closed = False

    @classmethod
    def from_config(cls, config: ConfigManager,
                    client_factory: Optional[Callable[..., Any]] = None) -> "CosmosDBConnection":
        options = {}
        timeout = config.get("cosmos.connection_timeout")
        if timeout:
            options["connection_timeout"] = timeout
        return cls(
            endpoint=config.get("cosmos.endpoint"),
            key=config.get("cosmos.key"),
            application_name=config.get("cosmos.application_name"),
            client_factory=client_factory,
            **options
        )

    async def __aenter__(self) -> "CosmosDBConnection":
        self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def open(self) -> None:
        """Create the underlying client."""
        if self.client is not None:
            return
        logger.info(f"Connecting to Cosmos DB at {self.endpoint}")
        self.client = self._client_factory(self.endpoint, credential=self.key,
                                           **self.client_options)

    async def close(self) -> None:
        """Release the underlying client."""
        if self.closed or self.client is None:
            return
        self.closed = True
        try:
            await self.client.close()
        finally:
            self.client = None
            self.database = None
            self.container = None
        logger.info("Cosmos DB client closed")

    def _require(self, handle: Any, what: str) -> Any:
        if handle is None:
            raise RuntimeError(f"No {what} available; the session has not reached that step")
        return handle

    async def ensure_database(self, database_id: str) -> Any:
        """Create the database if it does not exist and select it."""
        client = self._require(self.client, "client")
        try:
            self.database = await client.create_database_if_not_exists(id=database_id)
        except cosmos_exceptions.CosmosHttpResponseError as e:
            logger.error(f"Failed to create/access database '{database_id}': {e}")
            raise translate_cosmos_error(e, f"database '{database_id}'") from e
        logger.info(f"Database ready: {database_id}")
        return self.database

    async def ensure_container(self, container_id: str, partition_key_path: str) -> Any:
        """Create the container if it does not exist and select it."""
        database = self._require(self.database, "database")
        try:
            self.container = await database.create_container_if_not_exists(
                id=container_id, partition_key=PartitionKey(path=partition_key_path)
            )
        except cosmos_exceptions.CosmosHttpResponseError as e:
            logger.error(f"Failed to create/access container '{container_id}': {e}")
            raise translate_cosmos_error(e, f"container '{container_id}'") from e
        logger.info(f"Container ready: {container_id} (pk: {partition_key_path})")
        return self.container

    async def read_throughput(self) -> Optional[int]:
        """Return the container's provisioned throughput in RU/s.

        Raises ThroughputUnsupportedError when the container has no dedicated
        fixed throughput (serverless accounts, shared database throughput).
        """
        container = self._require(self.container, "container")
        try:
            properties = await container.get_throughput()
        except cosmos_exceptions.CosmosHttpResponseError as e:
            if e.status_code in (400, 404):
                detail = getattr(e, "http_error_message", None) or str(e)
                raise ThroughputUnsupportedError(
                    "Cannot read container throughput", e.status_code, detail
                ) from e
            raise translate_cosmos_error(e, "read throughput") from e
        return properties.offer_throughput

    async def set_throughput(self, throughput: int) -> None:
        """Replace the container's provisioned throughput."""
        container = self._require(self.container, "container")
        try:
            await container.replace_throughput(throughput)
        except cosmos_exceptions.CosmosHttpResponseError as e:
            raise translate_cosmos_error(e, "replace throughput") from e
        logger.info(f"Container throughput set to {throughput} RU/s")

    async def read_item(self, item_id: str, partition_key: str) -> ItemResponse:
        """Read one family; raises ItemNotFoundError when it does not exist."""
        container = self._require(self.container, "container")
        recorder = _ChargeRecorder()
        try:
            body = await container.read_item(item=item_id, partition_key=partition_key,
                                             response_hook=recorder)
        except cosmos_exceptions.CosmosHttpResponseError as e:
            if e.status_code != 404:
                logger.error(f"Failed to read item {item_id}: {e}")
            raise translate_cosmos_error(e, f"read item {item_id}") from e
        return ItemResponse(Family.model_validate(body), recorder.request_charge)

    async def create_item(self, family: Family) -> ItemResponse:
        """Insert a new family; raises ItemConflictError when the id is taken."""
        container = self._require(self.container, "container")
        recorder = _ChargeRecorder()
        try:
            body = await container.create_item(body=family.to_document(),
                                               response_hook=recorder)
        except cosmos_exceptions.CosmosHttpResponseError as e:
            logger.error(f"Failed to create item {family.id}: {e}")
            raise translate_cosmos_error(e, f"create item {family.id}") from e
        return ItemResponse(Family.model_validate(body), recorder.request_charge)

    async def replace_item(self, family: Family, item_id: str,
                           partition_key: str) -> ItemResponse:
        """Replace the whole stored document addressed by ``(item_id, partition_key)``."""
        container = self._require(self.container, "container")
        if family.partition_key != partition_key:
            raise ValueError(
                f"Partition key mismatch: record has {family.partition_key!r}, "
                f"request addresses {partition_key!r}"
            )
        recorder = _ChargeRecorder()
        try:
            body = await container.replace_item(item=item_id, body=family.to_document(),
                                                response_hook=recorder)
        except cosmos_exceptions.CosmosHttpResponseError as e:
            logger.error(f"Failed to replace item {item_id}: {e}")
            raise translate_cosmos_error(e, f"replace item {item_id}") from e
        return ItemResponse(Family.model_validate(body), recorder.request_charge)

    async def delete_item(self, item_id: str, partition_key: str) -> Optional[float]:
        """Delete an item and return the request charge, when reported."""
        container = self._require(self.container, "container")
        recorder = _ChargeRecorder()
        try:
            await container.delete_item(item=item_id, partition_key=partition_key,
                                        response_hook=recorder)
        except cosmos_exceptions.CosmosHttpResponseError as e:
            logger.error(f"Failed to delete item {item_id}: {e}")
            raise translate_cosmos_error(e, f"delete item {item_id}") from e
        return recorder.request_charge

    async def query_items(self, spec: QuerySpec,
                          page_size: Optional[int] = None) -> AsyncIterator[Family]:
        """Yield matching families, draining the store's pages lazily."""
        container = self._require(self.container, "container")
        logger.debug(f"Running query: {spec.query} {spec.parameters}")
        pager = container.query_items(
            query=spec.query,
            parameters=list(spec.parameters) or None,
            max_item_count=page_size,
        )
        page_count = 0
        try:
            async for page in pager.by_page():
                page_count += 1
                async for item in page:
                    yield Family.model_validate(item)
        except cosmos_exceptions.CosmosHttpResponseError as e:
            logger.error(f"Query failed: {e}")
            raise translate_cosmos_error(e, "query") from e
        logger.debug(f"Query drained {page_count} page(s)")

    async def delete_database(self) -> None:
        """Drop the selected database and everything in it."""
        client = self._require(self.client, "client")
        database = self._require(self.database, "database")
        try:
            await client.delete_database(database)
        except cosmos_exceptions.CosmosHttpResponseError as e:
            logger.error(f"Failed to delete database: {e}")
            raise translate_cosmos_error(e, "delete database") from e
        logger.info(f"Database deleted: {database.id}")
