"""
Linear constraints of the coloring model.

Conflict edge (s, t) with slack e: one clause per representable color c,

    sum_p lit(s_p, c_p) + lit(t_p, c_p) + e >= 1,   lit(x, 0) = x, lit(x, 1) = 1 - x

Every literal vanishes exactly when both endpoints take color c, which
forces e = 1; for any other pair of colors some literal is 1.

Stitch edge (s, t) with slack e: |s_p - t_p| <= e for each bit p, written
as two inequalities per bit. e must reach 1 whenever the colors differ.

Constraints are named R0, R1, ... in edge order, then vertex order.
"""

import logging
from collections.abc import Iterator
from itertools import count
from typing import Any

from .backend import MipBackend, Sense
from .encoding import MAX_COLORS, NUM_BITS, VariableEncoding, bit_upper_bounds, color_to_bits
from .graph import ConflictGraph

_logger = logging.getLogger(__name__)


def _literal_sum(bit_vars, pattern) -> tuple[list[tuple[Any, float]], float]:
    """Sum of literals that are all 0 iff bit_vars equal pattern, as (terms, constant)."""
    terms = []
    constant = 0.0
    for var, bit in zip(bit_vars, pattern):
        if bit:
            terms.append((var, -1.0))  # 1 - x
            constant += 1.0
        else:
            terms.append((var, 1.0))  # x
    return terms, constant


def add_conflict_constraints(
    backend: MipBackend,
    source_bits: tuple[Any, Any],
    target_bits: tuple[Any, Any],
    slack: Any,
    names: Iterator[str],
) -> int:
    """Emit the four clauses charging the slack when both endpoints share a color."""
    for color in range(MAX_COLORS):
        pattern = color_to_bits(color)
        s_terms, s_const = _literal_sum(source_bits, pattern)
        t_terms, t_const = _literal_sum(target_bits, pattern)
        terms = s_terms + t_terms + [(slack, 1.0)]
        backend.add_constraint(terms, Sense.GE, 1.0 - s_const - t_const, next(names))
    return MAX_COLORS


def add_stitch_constraints(
    backend: MipBackend,
    source_bits: tuple[Any, Any],
    target_bits: tuple[Any, Any],
    slack: Any,
    names: Iterator[str],
) -> int:
    """Emit |s_p - t_p| <= slack for both bits."""
    for s, t in zip(source_bits, target_bits):
        backend.add_constraint([(s, 1.0), (t, -1.0), (slack, -1.0)], Sense.LE, 0.0, next(names))
        backend.add_constraint([(t, 1.0), (s, -1.0), (slack, -1.0)], Sense.LE, 0.0, next(names))
    return 2 * NUM_BITS


def add_color_domain_constraints(
    backend: MipBackend,
    encoding: VariableEncoding,
    num_colors: int,
    names: Iterator[str],
) -> int:
    """
    Cut off bit patterns of colors >= num_colors that bounds cannot exclude.

    Bounds already pin bits no valid color uses (b0 for k=2). For k=3 the
    pattern (1, 1) survives the bounds and is removed with b0 + b1 <= 1.
    """
    upper = bit_upper_bounds(num_colors)
    excluded = []
    for color in range(num_colors, MAX_COLORS):
        pattern = color_to_bits(color)
        if all(bit <= ub for bit, ub in zip(pattern, upper)):
            excluded.append(pattern)

    added = 0
    for bit_vars in encoding.vertex_bits:
        for pattern in excluded:
            # no-good cut: sum_{bit=1} x - sum_{bit=0} x <= ones - 1
            terms = [(var, 1.0 if bit else -1.0) for var, bit in zip(bit_vars, pattern)]
            backend.add_constraint(terms, Sense.LE, sum(pattern) - 1.0, next(names))
            added += 1
    return added


def build_constraints(
    backend: MipBackend,
    graph: ConflictGraph,
    encoding: VariableEncoding,
    num_colors: int,
) -> int:
    """
    Add all edge and domain constraints of the model.

    Returns:
        Number of constraints added
    """
    names = (f"R{i}" for i in count())
    total = 0

    for edge, slack in zip(graph.edges, encoding.edge_slacks):
        source_bits = encoding.vertex_bits[edge.source]
        target_bits = encoding.vertex_bits[edge.target]
        if edge.is_conflict:
            total += add_conflict_constraints(backend, source_bits, target_bits, slack, names)
        else:
            total += add_stitch_constraints(backend, source_bits, target_bits, slack, names)

    total += add_color_domain_constraints(backend, encoding, num_colors, names)

    _logger.debug("Generated %d constraints for %s (k=%d)", total, graph.name, num_colors)
    return total
