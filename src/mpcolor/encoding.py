"""
Two-bit color encoding and variable allocation.

Every vertex v owns two binary variables (b0_v, b1_v) with

    color(v) = 2 * b0_v + b1_v

so four colors are representable. Every place that maps between colors
and bits (pre-color fixing, conflict clauses, domain restriction,
decoding) goes through color_to_bits / bits_to_color below.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .backend import MipBackend
from .graph import ConflictGraph

_logger = logging.getLogger(__name__)

NUM_BITS = 2
BIT_WEIGHTS = (2, 1)  # b0 is the high bit
MAX_COLORS = 1 << NUM_BITS


def color_to_bits(color: int) -> tuple[int, int]:
    """Split a color into its (b0, b1) bit pattern."""
    if not 0 <= color < MAX_COLORS:
        raise ValueError(f"Color {color} cannot be encoded in {NUM_BITS} bits")
    return (color >> 1) & 1, color & 1


def bits_to_color(bit0: float, bit1: float) -> int:
    """Recombine (possibly slightly fractional) solver bit values into a color."""
    return int(round(BIT_WEIGHTS[0] * bit0 + BIT_WEIGHTS[1] * bit1))


def bit_upper_bounds(num_colors: int) -> tuple[int, ...]:
    """
    Upper bound of each bit for an uncolored vertex.

    A bit that no color below num_colors ever sets is pinned to 0; for
    k=2 this fixes b0, leaving colors {0, 1}.
    """
    patterns = [color_to_bits(c) for c in range(num_colors)]
    return tuple(max(bits[p] for bits in patterns) for p in range(NUM_BITS))


@dataclass
class VariableEncoding:
    """Solver variables of one formulation."""

    vertex_bits: list[tuple[Any, Any]]  # vertex index -> (b0, b1)
    edge_slacks: list[Any]  # edge index -> slack in [0, 1]

    def __len__(self) -> int:
        return NUM_BITS * len(self.vertex_bits) + len(self.edge_slacks)


def encode_variables(
    backend: MipBackend,
    graph: ConflictGraph,
    num_colors: int,
    hard_conflicts: bool = False,
) -> VariableEncoding:
    """
    Allocate the decision variables of a coloring model.

    Pre-colored vertices get fixed bits (lower bound == upper bound), so
    the preset is enforced by bounds rather than by extra constraints.

    Args:
        backend: Solver session to create the variables in
        graph: The conflict graph
        num_colors: Number of available colors (k)
        hard_conflicts: Bound conflict slacks to 0 so conflicts cannot be paid for

    Returns:
        VariableEncoding with 2*|V| bits and |E| slacks
    """
    upper = bit_upper_bounds(num_colors)

    vertex_bits = []
    for v in range(graph.num_vertices):
        preset = graph.precolors.get(v)
        fixed = color_to_bits(preset) if preset is not None else None
        bits = []
        for p in range(NUM_BITS):
            name = f"v{NUM_BITS * v + p}"
            if fixed is not None:
                bits.append(backend.add_binary_variable(name, fixed=fixed[p]))
            else:
                bits.append(backend.add_binary_variable(name, upper=upper[p]))
        vertex_bits.append(tuple(bits))

    edge_slacks = []
    for i, edge in enumerate(graph.edges):
        upper_slack = 0.0 if hard_conflicts and edge.is_conflict else 1.0
        edge_slacks.append(backend.add_continuous_variable(0.0, upper_slack, f"e{i}"))

    _logger.debug(
        "Encoded %s: %d bit variables (%d fixed), %d slack variables",
        graph.name,
        NUM_BITS * len(vertex_bits),
        NUM_BITS * len(graph.precolors),
        len(edge_slacks),
    )
    return VariableEncoding(vertex_bits=vertex_bits, edge_slacks=edge_slacks)
