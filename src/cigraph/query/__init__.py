"""Query and traversal engine."""

from cigraph.query.blast_radius import blast_radius
from cigraph.query.flow_graph import (
    make_flow_graph_key,
    materialize_flow_graph,
    materialize_flow_graph_for_key,
)
from cigraph.query.impact import ImpactResult, compute_impact
from cigraph.query.neighborhood import EdgeOccurrenceCount, Neighborhood, neighborhood
from cigraph.query.search import SearchHit, semantic_search, text_search
from cigraph.query.trace import FLOW_EDGE_TYPES, FlowTrace, trace_flow

__all__ = [
    "FLOW_EDGE_TYPES",
    "EdgeOccurrenceCount",
    "FlowTrace",
    "ImpactResult",
    "Neighborhood",
    "SearchHit",
    "blast_radius",
    "compute_impact",
    "make_flow_graph_key",
    "materialize_flow_graph",
    "materialize_flow_graph_for_key",
    "neighborhood",
    "semantic_search",
    "text_search",
    "trace_flow",
]
