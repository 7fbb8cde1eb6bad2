"""cigraph CLI - ingest and query a code intelligence graph."""

from pathlib import Path

import click

from cigraph.cli.context import CliContext
from cigraph.cli.ingest import ingest_command
from cigraph.cli.query import (
    blast_radius_command,
    mismatches_command,
    neighborhood_command,
    trace_command,
)
from cigraph.config.loader import load_config, resolve_database_path
from cigraph.core.errors import ConfigError
from cigraph.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="cigraph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="SQLite database (default: database.path from config)",
)
@click.option("--tenant", "tenant_id", default="local", show_default=True, envvar="CIGRAPH_TENANT")
@click.option("--repo", "repo_id", default="default", show_default=True, envvar="CIGRAPH_REPO")
@click.pass_context
def cli(
    ctx: click.Context, verbose: bool, db_path: Path | None, tenant_id: str, repo_id: str
) -> None:
    """cigraph - multi-tenant code intelligence graph."""
    try:
        config = load_config()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)

    ctx.obj = CliContext(
        config=config,
        db_path=db_path or resolve_database_path(config),
        tenant_id=tenant_id,
        repo_id=repo_id,
    )


cli.add_command(ingest_command, name="ingest")
cli.add_command(blast_radius_command, name="blast-radius")
cli.add_command(neighborhood_command, name="neighborhood")
cli.add_command(trace_command, name="trace")
cli.add_command(mismatches_command, name="mismatches")


if __name__ == "__main__":
    cli()
