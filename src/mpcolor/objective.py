"""Weighted objective of the coloring model."""

from .backend import MipBackend
from .encoding import VariableEncoding
from .graph import ConflictGraph


def edge_cost(weight: int, stitch_weight: float) -> float:
    """Cost charged when an edge's slack is 1."""
    if weight >= 0:
        return float(weight)
    return stitch_weight * -weight


def build_objective(
    backend: MipBackend,
    graph: ConflictGraph,
    encoding: VariableEncoding,
    stitch_weight: float,
) -> None:
    """
    Minimize sum(weight * slack) over conflict edges plus
    sum(stitch_weight * |weight| * slack) over stitch edges.
    """
    terms = []
    for edge, slack in zip(graph.edges, encoding.edge_slacks):
        cost = edge_cost(edge.weight, stitch_weight)
        if cost:
            terms.append((slack, cost))
    backend.set_objective(terms)
