"""Read-only graph queries: blast-radius, neighborhood, trace, mismatches."""

from __future__ import annotations

from typing import Any

import click

from cigraph.cli.context import CliContext, pass_cli_context
from cigraph.cli.output import echo_json, print_table, status
from cigraph.core.errors import QueryError
from cigraph.graph.records import Record
from cigraph.query.blast_radius import blast_radius
from cigraph.query.flow_graph import entrypoint_start_uid, materialize_flow_graph
from cigraph.query.neighborhood import Neighborhood, neighborhood
from cigraph.query.trace import FlowTrace, trace_flow
from cigraph.store.sql import SqlGraphStore

_DIRECTION = click.Choice(["in", "out", "both"])


@click.command()
@click.argument("symbol_uid")
@click.option("--depth", type=int, default=None, help="Hops to expand (0-5)")
@click.option("--direction", type=_DIRECTION, default="both", show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_cli_context
def blast_radius_command(
    ctx: CliContext, symbol_uid: str, depth: int | None, direction: str, as_json: bool
) -> None:
    """List every symbol within DEPTH hops of SYMBOL_UID."""
    hops = ctx.config.query.blast_radius_depth if depth is None else depth

    async def _query(store: SqlGraphStore) -> list[str]:
        return await blast_radius(
            store, ctx.tenant_id, ctx.repo_id, symbol_uid, hops, direction  # type: ignore[arg-type]
        )

    uids = ctx.run(_query)
    if as_json:
        echo_json({"symbol_uid": symbol_uid, "depth": hops, "symbol_uids": uids})
        return
    for uid in uids:
        click.echo(uid)


@click.command()
@click.argument("symbol_uid")
@click.option("--direction", type=_DIRECTION, default="both", show_default=True)
@click.option("--edge-type", "edge_types", multiple=True, help="Only these edge types (repeatable)")
@click.option("--limit", "limit_edges", type=int, default=None, help="Max edges returned")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_cli_context
def neighborhood_command(
    ctx: CliContext,
    symbol_uid: str,
    direction: str,
    edge_types: tuple[str, ...],
    limit_edges: int | None,
    as_json: bool,
) -> None:
    """Show the edges around SYMBOL_UID with their occurrence counts."""
    limit = ctx.config.query.neighborhood_limit_edges if limit_edges is None else limit_edges

    async def _query(store: SqlGraphStore) -> Neighborhood:
        return await neighborhood(
            store,
            ctx.tenant_id,
            ctx.repo_id,
            symbol_uid,
            direction,  # type: ignore[arg-type]
            edge_types or None,
            limit,
        )

    result = ctx.run(_query)
    if as_json:
        echo_json(result.to_dict())
        return
    print_table(
        f"Neighborhood of {symbol_uid}",
        ["source", "edge_type", "target", "occurrences"],
        (
            (c.source_symbol_uid, c.edge_type, c.target_symbol_uid, c.occurrences)
            for c in result.edge_occurrence_counts
        ),
    )


@click.command()
@click.argument("entrypoint_key")
@click.option("--depth", type=int, default=None, help="Hops to follow (clamped to 0-10)")
@click.option(
    "--materialize",
    "sha",
    default=None,
    metavar="SHA",
    help="Store the trace as a flow graph for this commit sha",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_cli_context
def trace_command(
    ctx: CliContext, entrypoint_key: str, depth: int | None, sha: str | None, as_json: bool
) -> None:
    """Trace execution flow from the entrypoint ENTRYPOINT_KEY."""
    if depth is None:
        depth = ctx.config.query.flow_graph_depth if sha else ctx.config.query.flow_depth

    async def _query(store: SqlGraphStore) -> tuple[FlowTrace, Record | None]:
        entrypoint = await store.get_flow_entrypoint(
            tenant_id=ctx.tenant_id, repo_id=ctx.repo_id, entrypoint_key=entrypoint_key
        )
        if entrypoint is None:
            raise QueryError.not_found("flow_entrypoint", entrypoint_key)
        trace = await trace_flow(
            store, ctx.tenant_id, ctx.repo_id, entrypoint_start_uid(entrypoint), depth
        )
        flow_graph = None
        if sha:
            flow_graph = await materialize_flow_graph(
                store, ctx.tenant_id, ctx.repo_id, entrypoint, sha, depth
            )
        return trace, flow_graph

    trace, flow_graph = ctx.run(_query)
    if as_json:
        payload: dict[str, Any] = trace.to_dict()
        if flow_graph is not None:
            payload["flow_graph"] = flow_graph
        echo_json(payload)
        return
    print_table(
        f"Flow from {trace.start_symbol_uid} (depth {trace.depth})",
        ["source", "edge_type", "target"],
        ((e["source_symbol_uid"], e["edge_type"], e["target_symbol_uid"]) for e in trace.edges),
    )
    if flow_graph is not None:
        status(f"Stored flow graph {flow_graph['flow_graph_key']}", style="success")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_cli_context
def mismatches_command(ctx: CliContext, as_json: bool) -> None:
    """List stored dependency mismatches."""

    async def _query(store: SqlGraphStore) -> list[Record]:
        return await store.list_dependency_mismatches(
            tenant_id=ctx.tenant_id, repo_id=ctx.repo_id
        )

    mismatches = ctx.run(_query)
    if as_json:
        echo_json(mismatches)
        return
    if not mismatches:
        status("No dependency mismatches", style="success")
        return
    print_table(
        "Dependency mismatches",
        ["type", "package", "sha"],
        ((m.get("mismatch_type"), m.get("package_key"), m.get("sha")) for m in mismatches),
    )
