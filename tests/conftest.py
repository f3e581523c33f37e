import asyncio

import pytest
from rich.console import Console

from cosmos_getting_started.config import ConfigManager
from cosmos_getting_started.database import CosmosDBConnection
from cosmos_getting_started.session import SessionContext, SessionState

from fakes import FakeAccount


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("COSMOS_ENDPOINT", raising=False)
    monkeypatch.delenv("COSMOS_KEY", raising=False)


@pytest.fixture
def account():
    return FakeAccount()


@pytest.fixture
def config(tmp_path):
    manager = ConfigManager(str(tmp_path / "config.yaml"))
    manager.set("cosmos.endpoint", "https://localhost:8081/")
    manager.set("cosmos.key", "secret-key")
    manager.set("demo.pause", False)
    return manager


@pytest.fixture
def console():
    return Console(record=True, width=200)


@pytest.fixture
def connection(config, account):
    conn = CosmosDBConnection.from_config(config, client_factory=account.client_factory)
    conn.open()
    return conn


@pytest.fixture
def ready_connection(connection):
    """Connection with the database and container already selected."""
    asyncio.run(connection.ensure_database("ToDoList"))
    asyncio.run(connection.ensure_container("Items", "/partitionKey"))
    return connection


@pytest.fixture
def context(ready_connection, config, console):
    return SessionContext(
        connection=ready_connection,
        config=config,
        console=console,
        state=SessionState.CONTAINER_READY,
    )
