import asyncio
import logging

import pytest
from azure.cosmos import exceptions as cosmos_exceptions

from cosmos_getting_started.database import CosmosDBConnection
from cosmos_getting_started.exceptions import (
    ConfigurationError,
    ItemConflictError,
    ItemNotFoundError,
    StoreError,
    ThroughputUnsupportedError,
    translate_cosmos_error,
)
from cosmos_getting_started.models import sample_families
from cosmos_getting_started.queries import raw_query


async def _drain(connection, spec, page_size=None):
    return [family async for family in connection.query_items(spec, page_size=page_size)]


def test_missing_credentials_rejected(account):
    with pytest.raises(ConfigurationError):
        CosmosDBConnection("", "key")
    with pytest.raises(ConfigurationError):
        CosmosDBConnection("https://localhost:8081/", "")


def test_client_options_passed_to_factory(config, account):
    config.set("cosmos.connection_timeout", 10)
    connection = CosmosDBConnection.from_config(config, client_factory=account.client_factory)
    connection.open()

    client = account.clients[0]
    assert client.url == "https://localhost:8081/"
    assert client.credential == "secret-key"
    assert client.options == {"user_agent": "CosmosDBPythonQuickstart", "connection_timeout": 10}


def test_ensure_database_and_container_are_idempotent(connection, account):
    first = asyncio.run(connection.ensure_database("ToDoList"))
    second = asyncio.run(connection.ensure_database("ToDoList"))
    assert first is second

    container = asyncio.run(connection.ensure_container("Items", "/partitionKey"))
    assert container is asyncio.run(connection.ensure_container("Items", "/partitionKey"))
    assert container.partition_key_path == "/partitionKey"


def test_operations_before_selection_fail(connection):
    with pytest.raises(RuntimeError):
        asyncio.run(connection.read_item("Andersen.1", "Andersen"))


def test_create_then_read(ready_connection):
    andersen, _ = sample_families()

    created = asyncio.run(ready_connection.create_item(andersen))
    assert created.item == andersen
    assert created.request_charge == 1.0

    read = asyncio.run(ready_connection.read_item("Andersen.1", "Andersen"))
    assert read.item == andersen


def test_read_requires_matching_partition_key(ready_connection):
    andersen, _ = sample_families()
    asyncio.run(ready_connection.create_item(andersen))

    with pytest.raises(ItemNotFoundError) as info:
        asyncio.run(ready_connection.read_item("Andersen.1", "Wakefield"))
    assert info.value.status_code == 404


def test_create_duplicate_conflicts(ready_connection):
    andersen, _ = sample_families()
    asyncio.run(ready_connection.create_item(andersen))

    with pytest.raises(ItemConflictError) as info:
        asyncio.run(ready_connection.create_item(andersen))
    assert info.value.status_code == 409


def test_replace_missing_item_not_found(ready_connection):
    _, wakefield = sample_families()
    with pytest.raises(ItemNotFoundError):
        asyncio.run(ready_connection.replace_item(wakefield, wakefield.id, wakefield.partition_key))


def test_replace_rejects_partition_key_mismatch(ready_connection):
    _, wakefield = sample_families()
    with pytest.raises(ValueError):
        asyncio.run(ready_connection.replace_item(wakefield, wakefield.id, "Andersen"))


def test_delete_then_read_not_found(ready_connection):
    _, wakefield = sample_families()
    asyncio.run(ready_connection.create_item(wakefield))

    charge = asyncio.run(ready_connection.delete_item("Wakefield.7", "Wakefield"))
    assert charge == 1.0

    with pytest.raises(ItemNotFoundError):
        asyncio.run(ready_connection.read_item("Wakefield.7", "Wakefield"))
    with pytest.raises(ItemNotFoundError):
        asyncio.run(ready_connection.delete_item("Wakefield.7", "Wakefield"))


def test_query_drains_every_page(ready_connection):
    for i in range(5):
        family = sample_families()[0].model_copy(update={"id": f"Andersen.{i}"})
        asyncio.run(ready_connection.create_item(family))
    asyncio.run(ready_connection.create_item(sample_families()[1]))

    spec = raw_query("SELECT * FROM c WHERE c.partitionKey = 'Andersen'")
    results = asyncio.run(_drain(ready_connection, spec, page_size=2))

    assert sorted(f.id for f in results) == [f"Andersen.{i}" for i in range(5)]


def test_query_is_restartable(ready_connection):
    asyncio.run(ready_connection.create_item(sample_families()[0]))
    spec = raw_query("SELECT * FROM c")

    assert len(asyncio.run(_drain(ready_connection, spec))) == 1
    assert len(asyncio.run(_drain(ready_connection, spec))) == 1


def test_query_syntax_error_is_store_error(ready_connection):
    with pytest.raises(StoreError) as info:
        asyncio.run(_drain(ready_connection, raw_query("SELECT nonsense")))
    assert info.value.status_code == 400


def test_throughput_read_and_replace(ready_connection):
    assert asyncio.run(ready_connection.read_throughput()) == 400
    asyncio.run(ready_connection.set_throughput(500))
    assert asyncio.run(ready_connection.read_throughput()) == 500


def test_throughput_unsupported(config):
    from fakes import FakeAccount

    serverless = FakeAccount(throughput=None)
    connection = CosmosDBConnection.from_config(config, client_factory=serverless.client_factory)
    connection.open()
    asyncio.run(connection.ensure_database("ToDoList"))
    asyncio.run(connection.ensure_container("Items", "/partitionKey"))

    with pytest.raises(ThroughputUnsupportedError) as info:
        asyncio.run(connection.read_throughput())
    assert info.value.status_code == 400
    assert "serverless" in info.value.detail


def test_operations_fail_after_database_deleted(ready_connection, account):
    asyncio.run(ready_connection.create_item(sample_families()[0]))
    asyncio.run(ready_connection.delete_database())

    assert "ToDoList" not in account.databases
    with pytest.raises(StoreError):
        asyncio.run(ready_connection.read_item("Andersen.1", "Andersen"))
    with pytest.raises(StoreError):
        asyncio.run(ready_connection.delete_database())

    asyncio.run(ready_connection.close())
    assert account.clients[0].close_calls == 1


def test_close_runs_once(connection, account):
    asyncio.run(connection.close())
    asyncio.run(connection.close())
    assert account.clients[0].close_calls == 1
    assert connection.closed


def test_context_manager_closes_on_error(config, account):
    async def scenario():
        async with CosmosDBConnection.from_config(config, client_factory=account.client_factory) as conn:
            await conn.ensure_database("ToDoList")
            raise KeyError("boom")

    with pytest.raises(KeyError):
        asyncio.run(scenario())
    assert account.clients[0].close_calls == 1


def test_translate_cosmos_error():
    not_found = cosmos_exceptions.CosmosResourceNotFoundError(status_code=404, message="gone")
    conflict = cosmos_exceptions.CosmosResourceExistsError(status_code=409, message="dup")
    throttled = cosmos_exceptions.CosmosHttpResponseError(status_code=429, message="slow down")

    assert isinstance(translate_cosmos_error(not_found), ItemNotFoundError)
    assert isinstance(translate_cosmos_error(conflict), ItemConflictError)

    error = translate_cosmos_error(throttled, "read item x")
    assert type(error) is StoreError
    assert error.status_code == 429
    assert error.detail == "slow down"
    assert str(error) == "read item x: slow down"


def test_throughput_unsupported_on_shared_database_throughput(config):
    from fakes import SHARED_THROUGHPUT, FakeAccount

    shared = FakeAccount(throughput=SHARED_THROUGHPUT)
    connection = CosmosDBConnection.from_config(config, client_factory=shared.client_factory)
    connection.open()
    asyncio.run(connection.ensure_database("ToDoList"))
    asyncio.run(connection.ensure_container("Items", "/partitionKey"))

    with pytest.raises(ThroughputUnsupportedError) as info:
        asyncio.run(connection.read_throughput())
    assert info.value.status_code == 404


def test_autoscale_throughput_has_no_fixed_value(config):
    from fakes import AUTOSCALE_THROUGHPUT, FakeAccount

    autoscale = FakeAccount(throughput=AUTOSCALE_THROUGHPUT)
    connection = CosmosDBConnection.from_config(config, client_factory=autoscale.client_factory)
    connection.open()
    asyncio.run(connection.ensure_database("ToDoList"))
    asyncio.run(connection.ensure_container("Items", "/partitionKey"))

    assert asyncio.run(connection.read_throughput()) is None


def test_context_manager_leaves_error_reporting_to_caller(config, account, caplog):
    async def scenario():
        async with CosmosDBConnection.from_config(config, client_factory=account.client_factory):
            raise KeyError("boom")

    with caplog.at_level(logging.DEBUG, logger="cosmos_getting_started.database"):
        with pytest.raises(KeyError):
            asyncio.run(scenario())

    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


@pytest.mark.parametrize("name", [
    "read_throughput", "set_throughput", "read_item", "create_item",
    "replace_item", "delete_item", "query_items", "delete_database",
])
def test_item_operations_are_documented(name):
    assert getattr(CosmosDBConnection, name).__doc__
