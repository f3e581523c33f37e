"""
The getting-started walkthrough as an ordered list of steps.

Each step is a coroutine taking the shared SessionContext, so the sequence
can be driven end to end by ``run_demo`` or one step at a time from tests.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .config import ConfigManager
from .database import CosmosDBConnection
from .exceptions import ItemNotFoundError, ThroughputUnsupportedError
from .models import Family, sample_families
from .queries import TypedQuery, as_spec, fields_of, raw_query

logger = logging.getLogger(__name__)

QUERY_FAMILY = "Andersen"
UPDATE_FAMILY_ID = "Wakefield.7"
UPDATE_FAMILY_PARTITION = "Wakefield"


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    DATABASE_READY = "database_ready"
    CONTAINER_READY = "container_ready"
    SEEDED = "seeded"
    QUERIED = "queried"
    UPDATED = "updated"
    DELETED = "deleted"
    CLOSED = "closed"


@dataclass
class SessionContext:
    connection: CosmosDBConnection
    config: ConfigManager
    console: Console = field(default_factory=Console)
    pause: Callable[[], None] = lambda: None
    state: SessionState = SessionState.DISCONNECTED
    throughput: Optional[int] = None
    seeded: List[Family] = field(default_factory=list)
    query_results: Dict[str, List[Family]] = field(default_factory=dict)
    updated: Optional[Family] = None


def console_pause() -> None:
    click.pause("Press any key to continue...")


async def get_or_create(ctx: SessionContext, family: Family) -> Family:
    """Return the stored family, creating it first if it is absent.

    The read and the create are two separate requests, so this is not
    atomic. Two callers racing on the same id both see "not found"; the store
    accepts only one create and the other fails with ItemConflictError.
    """
    connection = ctx.connection
    ctx.console.print(f"\nGetting item {family.id}...")
    try:
        response = await connection.read_item(family.id, family.partition_key)
        ctx.console.print(f"Found item in database. Id: {response.item.id}")
    except ItemNotFoundError:
        ctx.console.print(f"Item {family.id} not found.")
        ctx.console.print(f"Creating item (id: {family.id}) in database...")
        response = await connection.create_item(family)
        ctx.console.print(f"Item created with id {response.item.id}")

    if response.request_charge is not None:
        ctx.console.print(f"Operation consumed {response.request_charge} RUs.")
    ctx.pause()
    return response.item


async def run_query(ctx: SessionContext, query: Any) -> List[Family]:
    """Drain a query (SQL text, QuerySpec or TypedQuery), printing each family as it is read."""
    families = []
    async for family in ctx.connection.query_items(as_spec(query)):
        families.append(family)
        ctx.console.print(f"\tRead {family}", markup=False)
    logger.info(f"Query returned {len(families)} item(s)")
    return families


async def create_database(ctx: SessionContext) -> None:
    database_id = ctx.config.get("demo.database_id")
    ctx.console.print(f"\n\nCreating database '{database_id}'...")
    database = await ctx.connection.ensure_database(database_id)
    ctx.console.print(f"Database created with Id '{database.id}'.")
    ctx.state = SessionState.DATABASE_READY
    ctx.pause()


async def create_container(ctx: SessionContext) -> None:
    """Partition on /partitionKey so requests and storage spread across families."""
    ctx.console.print("\n\nCreating container...")
    container = await ctx.connection.ensure_container(
        ctx.config.get("demo.container_id"),
        ctx.config.get("demo.partition_key_path"),
    )
    ctx.console.print(f"Container '{container.id}' created.")
    ctx.state = SessionState.CONTAINER_READY
    ctx.pause()


async def scale_container(ctx: SessionContext) -> None:
    """Raise the container's provisioned throughput, when it has one."""
    try:
        throughput = await ctx.connection.read_throughput()
    except ThroughputUnsupportedError as e:
        logger.warning(f"Throughput not available for container: {e.status_code}")
        ctx.console.print("Cannot read container throughput.")
        ctx.console.print(e.detail, markup=False)
        ctx.pause()
        return

    if throughput is None:
        ctx.console.print("Container has no fixed provisioned throughput.")
        return

    ctx.console.print(f"\n\nCurrent provisioned throughput : {throughput}")
    new_throughput = throughput + ctx.config.get("demo.throughput_increment", 100)
    await ctx.connection.set_throughput(new_throughput)
    ctx.throughput = new_throughput
    ctx.console.print(f"New provisioned throughput : {new_throughput}")
    ctx.pause()


async def add_items(ctx: SessionContext) -> None:
    for family in sample_families():
        ctx.seeded.append(await get_or_create(ctx, family))
    ctx.state = SessionState.SEEDED


async def query_items(ctx: SessionContext) -> None:
    """Query with SQL text. Filtering on the partition key keeps it to one partition."""
    spec = raw_query(f"SELECT * FROM c WHERE c.partitionKey = '{QUERY_FAMILY}'")
    ctx.console.print(f"\n\nRunning query: {spec.query}")
    ctx.query_results["sql"] = await run_query(ctx, spec)
    ctx.pause()


async def query_items_typed(ctx: SessionContext) -> None:
    """Same filter as query_items, built from typed field accessors."""
    family_fields = fields_of(Family)
    query = TypedQuery(Family).where(family_fields.partition_key == QUERY_FAMILY)
    spec = query.to_spec()
    ctx.console.print(f"\n\nRunning query (typed filter): {spec.query} {list(spec.parameters)}",
                      markup=False)
    ctx.query_results["typed"] = await run_query(ctx, query)
    ctx.state = SessionState.QUERIED
    ctx.pause()


async def replace_family_item(ctx: SessionContext) -> None:
    response = await ctx.connection.read_item(UPDATE_FAMILY_ID, UPDATE_FAMILY_PARTITION)
    family = response.item

    family.is_registered = True
    family.children[0].grade = 6

    response = await ctx.connection.replace_item(family, family.id, family.partition_key)
    ctx.updated = response.item
    ctx.console.print(f"Updated Family [{family.last_name},{family.id}].", markup=False)
    body = ctx.updated.model_dump_json(by_alias=True, exclude_none=True, indent=2)
    ctx.console.print(Panel(Text(body), title="Body is now", expand=False))
    ctx.state = SessionState.UPDATED
    ctx.pause()


async def delete_family_item(ctx: SessionContext) -> None:
    # Deleting needs both the id and the partition key value.
    await ctx.connection.delete_item(UPDATE_FAMILY_ID, UPDATE_FAMILY_PARTITION)
    ctx.console.print(f"Deleted Family [{UPDATE_FAMILY_PARTITION},{UPDATE_FAMILY_ID}]", markup=False)
    ctx.state = SessionState.DELETED
    ctx.pause()


async def delete_database(ctx: SessionContext) -> None:
    await ctx.connection.delete_database()
    ctx.console.print(f"Database '{ctx.config.get('demo.database_id')}' deleted.")
    ctx.pause()


Step = Callable[[SessionContext], Awaitable[None]]

DEMO_STEPS: List[Step] = [
    create_database,
    create_container,
    scale_container,
    add_items,
    query_items,
    query_items_typed,
    replace_family_item,
    delete_family_item,
    delete_database,
]


async def run_demo(config: ConfigManager, console: Optional[Console] = None,
                   client_factory: Optional[Callable[..., Any]] = None,
                   steps: Optional[List[Step]] = None) -> SessionContext:
    """Run the walkthrough, closing the connection exactly once on every path."""
    connection = CosmosDBConnection.from_config(config, client_factory=client_factory)
    ctx = SessionContext(
        connection=connection,
        config=config,
        console=console or Console(),
        pause=console_pause if config.get("demo.pause", True) else (lambda: None),
    )

    async with connection:
        ctx.state = SessionState.CONNECTED
        for step in steps if steps is not None else DEMO_STEPS:
            logger.debug(f"Running step {step.__name__}")
            await step(ctx)

    ctx.state = SessionState.CLOSED
    return ctx
