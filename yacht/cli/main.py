"""Main CLI entry point for yacht."""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import BaseModel, Field
from rich.console import Console
from rich.table import Table

from ..core.config import get_config_file, load_config
from ..core.errors import YachtError
from ..core.log import configure_logging, get_logger, shutdown_logging
from ..core.types import YachtConfig
from ..harness import Yacht
from ..results.reporter import Reporter


class GlobalCliOptions(BaseModel):
    """Global CLI options that can be used across all commands."""

    verbose: int = Field(0, description="Increase verbosity level")
    config_file: Optional[Path] = Field(None, description="Configuration file path")
    log_level: Optional[str] = Field(
        None, description="Harness logging level (DEBUG, INFO, WARNING, ERROR)"
    )


app = typer.Typer(
    name="yacht",
    help="yacht - Yet Another Scylla Harness for Testing",
    no_args_is_help=True,
    rich_markup_mode="markdown",
)
console = Console()
logger = get_logger(__name__)

PATTERNS_HELP = (
    "Test name patterns. Each is a substring of the path to a test file, "
    'e.g. "desc" runs every test with "desc" in its name in all suites, '
    '"lwt/desc" only those starting with "desc" in the "lwt" suite. '
    "Default: run all tests in all suites."
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase verbosity level"
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Harness logging level (DEBUG, INFO, WARNING, ERROR) - explicit level",
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file path (default: ~/.yacht.yml)"
    ),
) -> None:
    """yacht: run CQL test suites against Scylla."""
    if verbose > 0 and log_level is not None:
        console.print("[red]Error: Cannot specify both --verbose and --log-level[/red]")
        raise typer.Exit(1)

    if log_level is None and verbose > 0:
        log_level = "DEBUG" if verbose >= 2 else "INFO"

    ctx.ensure_object(dict)
    ctx.obj["cli_options"] = GlobalCliOptions(
        verbose=verbose, config_file=config_file, log_level=log_level
    )


def _load_config(ctx: typer.Context, **overrides: Any) -> YachtConfig:
    """Load configuration and set up logging at the resolved level."""
    options: GlobalCliOptions = (ctx.obj or {}).get("cli_options") or GlobalCliOptions()
    config = load_config(config_file=options.config_file, **overrides)
    configure_logging(level=(options.log_level or config.log_level).upper())
    return config


@app.command()
def run(
    ctx: typer.Context,
    patterns: Optional[List[str]] = typer.Argument(None, help=PATTERNS_HELP),
    force: bool = typer.Option(
        False, "--force", help="Go on with other tests in case of an individual test failure"
    ),
    vardir: Optional[Path] = typer.Option(
        None, "--vardir", help="Directory to run the tests in; leftovers are removed"
    ),
    srcdir: Optional[Path] = typer.Option(None, "--srcdir", help="Where to look for test suites"),
    builddir: Optional[Path] = typer.Option(
        None, "--builddir", help="Where to look for the server binary"
    ),
    uri: Optional[str] = typer.Option(
        None, "--uri", help="Run every suite against this pre-installed server"
    ),
) -> None:
    """Run test suites."""
    reporter = Reporter(console)
    reporter.greeting(sys.argv)

    scylla: Dict[str, Path] = {}
    if srcdir is not None:
        scylla["srcdir"] = srcdir
    if builddir is not None:
        scylla["builddir"] = builddir

    try:
        config = _load_config(
            ctx,
            force=force or None,
            filters=patterns or None,
            vardir=vardir,
            uri=uri,
            scylla=scylla or None,
        )
        config_file = get_config_file()
        if config_file is not None:
            reporter.config_used(config_file)
        logger.debug("Configuration: %s", config.model_dump(mode="json"))
        result = Yacht(config, reporter).run()
    except YachtError as e:
        logger.error("Run failed: %s", e)
        reporter.error(e)
        raise typer.Exit(1) from e
    finally:
        shutdown_logging()

    raise typer.Exit(result.return_code)


@app.command()
def version() -> None:
    """Show version information."""
    import cassandra
    import pydantic

    from .. import __version__

    table = Table(title="yacht Version Information")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_row("yacht", __version__)
    table.add_row("cassandra-driver", cassandra.__version__)
    table.add_row("pydantic", pydantic.VERSION)
    console.print(table)


@app.command()
def config(ctx: typer.Context) -> None:
    """Show current configuration."""
    try:
        current_config = _load_config(ctx)
    except YachtError as e:
        console.print(f"[red]Error getting configuration: {e}[/red]")
        raise typer.Exit(1) from e

    table = Table(title="yacht Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Config File", str(get_config_file() or "-"))
    table.add_row("Build Directory", str(current_config.scylla.builddir))
    table.add_row("Source Directory", str(current_config.scylla.srcdir))
    table.add_row("Var Directory", str(current_config.vardir))
    table.add_row("URI", current_config.uri or "-")
    table.add_row("Lane", current_config.lane_id)
    table.add_row("Keyspace", current_config.keyspace)
    table.add_row("Force", str(current_config.force))
    table.add_row("Cluster Nodes", str(current_config.cluster.nodes))
    table.add_row("Replication Strategy", current_config.cluster.replication_strategy)
    table.add_row("Server Startup Timeout", f"{current_config.timeouts.server_startup}s")
    table.add_row(
        "Addresses",
        f"{current_config.network.address_prefix}{current_config.network.first_host}"
        f"-{current_config.network.last_host}",
    )
    table.add_row("Log Level", current_config.log_level)
    console.print(table)


def cli_main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except (RuntimeError, OSError, ValueError) as e:
        logger.error("Unexpected error: %s", e)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
