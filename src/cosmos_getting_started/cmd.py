"""
Command-line interface for the Cosmos DB getting-started walkthrough.
"""

import asyncio
import click
import json
import sys
import logging
from rich.console import Console
from rich.table import Table

from .config import ConfigManager, DEFAULT_CONFIG_PATH
from .exceptions import StoreError
from .logging_setup import setup_logging
from .models import sample_families
from .session import run_demo

console = Console(soft_wrap=True)
logger = logging.getLogger(__name__)


@click.group()
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH,
              help="Configuration file path")
@click.option("--endpoint", default=None, help="Cosmos DB account endpoint URI")
@click.option("--key", default=None, help="Cosmos DB account primary key")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, config, endpoint, key, verbose):
    """Azure Cosmos DB for NoSQL getting-started walkthrough."""
    manager = ConfigManager(config)
    if endpoint:
        manager.set("cosmos.endpoint", endpoint)
    if key:
        manager.set("cosmos.key", key)

    setup_logging(manager, verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = manager


@cli.command("run")
@click.option("--no-pause", is_flag=True, help="Do not wait for a key press between steps")
@click.pass_context
def run_walkthrough(ctx, no_pause):
    """Run the full walkthrough against the configured account."""
    manager = ctx.obj["config"]
    if no_pause:
        manager.set("demo.pause", False)

    failed = False
    console.print("\n\nBeginning operations...\n")
    try:
        asyncio.run(run_demo(manager, console=console))
    except StoreError as e:
        logger.error(f"Store error {e.status_code}: {e.detail}")
        console.print(f"❌ {e.status_code} error occurred: {e.detail or e}", markup=False)
        failed = True
    except Exception as e:
        logger.exception("Walkthrough failed")
        console.print(f"❌ Error: {e}", markup=False)
        failed = True
    finally:
        console.print("End of demo.")

    if failed:
        sys.exit(1)
    console.print("✅ Walkthrough complete")


@cli.command("sample")
def show_sample():
    """Print the sample families as they are sent to the store."""
    documents = [family.to_document() for family in sample_families()]
    console.print_json(json.dumps(documents))


@cli.group("config")
def config_group():
    """Configuration commands."""
    pass


@config_group.command("show")
@click.pass_context
def config_show(ctx):
    """Show the effective configuration."""
    manager = ctx.obj["config"]
    shown = manager.masked()

    table = Table(title=f"Configuration ({manager.config_path})")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for section, values in shown.items():
        if isinstance(values, dict):
            for name, value in values.items():
                table.add_row(f"{section}.{name}", "" if value is None else str(value))
        else:
            table.add_row(section, str(values))

    console.print(table)


@config_group.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.pass_context
def config_init(ctx, force):
    """Write the default configuration file."""
    manager = ctx.obj["config"]

    if manager.config_path.exists() and not force:
        console.print(f"❌ {manager.config_path} already exists (use --force to overwrite)", markup=False)
        sys.exit(1)

    if manager.save_config(manager.get_default_config()):
        console.print(f"✅ Configuration written to {manager.config_path}", markup=False)
    else:
        console.print(f"❌ Failed to write {manager.config_path}", markup=False)
        sys.exit(1)


def main():
    """Main entry point for cosmos-getting-started."""
    cli()


if __name__ == "__main__":
    main()
