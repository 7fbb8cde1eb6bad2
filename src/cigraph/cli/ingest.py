"""cigraph ingest command - load an NDJSON index into the graph database."""

from __future__ import annotations

from typing import IO

import click

from cigraph.cli.context import CliContext, pass_cli_context
from cigraph.cli.output import echo_json, print_table, status
from cigraph.ingest.pipeline import IngestResult, Ingestor
from cigraph.store.sql import SqlGraphStore


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--batch-size", type=click.IntRange(min=1), default=None, help="Records per flush")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_cli_context
def ingest_command(
    ctx: CliContext, source: IO[str], batch_size: int | None, as_json: bool
) -> None:
    """Ingest an NDJSON index file into the graph.

    SOURCE is a file path, or - for stdin. Lines are read incrementally.
    """

    async def _ingest(store: SqlGraphStore) -> IngestResult:
        ingestor = Ingestor.from_config(ctx.config)
        if batch_size is not None:
            ingestor.batch_size = batch_size
        try:
            return await ingestor.ingest_stream(ctx.tenant_id, ctx.repo_id, source, store)
        finally:
            await ingestor.aclose()

    result = ctx.run(_ingest)

    if as_json:
        echo_json(result.to_dict())
        return

    status(
        f"Ingested {result.records} records in {result.flushes} batch(es) "
        f"({result.duration_ms} ms)",
        style="success",
    )
    print_table("Records", ["type", "count"], sorted(result.counts.items()))
    if result.unknown:
        status(f"Skipped {result.unknown} record(s) of unknown type", style="info")
    if result.mismatches is not None:
        status(f"Dependency mismatches: {result.mismatches}", style="info")
