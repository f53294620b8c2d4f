import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .backend import BackendStatus, MipBackend, OrToolsBackend
from .constraints import build_constraints
from .encoding import VariableEncoding, bits_to_color, encode_variables
from .errors import ConfigurationError, EncodingInvariantError, InfeasibleModelError, SolverError
from .graph import ConflictGraph
from .objective import build_objective, edge_cost

_logger = logging.getLogger(__name__)

SUPPORTED_COLOR_COUNTS = (2, 3)

BackendFactory = Callable[[], MipBackend]


@dataclass
class ColoringResult:
    """
    Result of coloring a conflict graph.

    For FEASIBLE results (time limit hit) the incumbent slacks need not be
    tight, so objective may exceed the cost recomputed from vertex_colors.
    """

    graph_name: str
    num_vertices: int
    num_edges: int
    num_colors: int
    status: BackendStatus
    objective: float  # Weighted cost of violated conflicts and used stitches
    vertex_colors: dict[int, int]  # Color of every vertex, pre-colored included
    edge_slacks: list[float]  # Slack value per edge, in graph edge order; zero-cost edges follow the colors
    runtime_seconds: float


class ILPColoring:
    """
    Exact ILP coloring with stitches.

    Encodes each vertex color in two binary variables and each edge
    violation in a continuous slack, then minimizes the weighted slack sum.
    Uses OR-Tools with SCIP backend by default.
    """

    def __init__(
        self,
        num_colors: int = 3,
        stitch_weight: float = 0.1,
        threads: Optional[int] = None,
        time_limit_seconds: Optional[float] = None,
        hard_conflicts: bool = False,
        solver_name: str = "SCIP",
        backend_factory: Optional[BackendFactory] = None,
        debug_lp_path: Optional[str | Path] = None,
    ):
        """
        Initialize the coloring solver.

        Args:
            num_colors: Number of masks k (2 or 3)
            stitch_weight: Multiplier on |weight| of stitch edges
            hard_conflicts: Forbid same-colored conflict edges instead of charging them
            threads: Worker thread hint forwarded to the solver
            time_limit_seconds: Optional solve time limit (no limit by default)
            solver_name: OR-Tools backend ("SCIP", "CBC")
            backend_factory: Creates a fresh MipBackend per solve; when given,
                threads, time_limit_seconds and solver_name are up to the factory
            debug_lp_path: Write the LP-format model here before solving

        Raises:
            ConfigurationError: If any setting is out of range
        """
        if isinstance(num_colors, bool) or num_colors not in SUPPORTED_COLOR_COUNTS:
            raise ConfigurationError(f"num_colors must be one of {SUPPORTED_COLOR_COUNTS}, got {num_colors!r}")
        if not (isinstance(stitch_weight, (int, float)) and math.isfinite(stitch_weight) and stitch_weight > 0):
            raise ConfigurationError(f"stitch_weight must be a positive number, got {stitch_weight!r}")
        if threads is not None and (isinstance(threads, bool) or not isinstance(threads, int) or threads <= 0):
            raise ConfigurationError(f"threads must be a positive integer, got {threads!r}")
        if time_limit_seconds is not None and not (
            isinstance(time_limit_seconds, (int, float))
            and not isinstance(time_limit_seconds, bool)
            and math.isfinite(time_limit_seconds)
            and time_limit_seconds > 0
        ):
            raise ConfigurationError(f"time_limit_seconds must be a positive finite number, got {time_limit_seconds!r}")

        self.num_colors = num_colors
        self.stitch_weight = stitch_weight
        self.hard_conflicts = hard_conflicts
        self.threads = threads
        self.time_limit_seconds = time_limit_seconds
        self.solver_name = solver_name
        self.backend_factory = backend_factory
        self.debug_lp_path = Path(debug_lp_path) if debug_lp_path is not None else None

    def get_params(self) -> dict:
        """Get solver parameters as a dictionary."""
        return {
            "solver": "ILP",
            "backend": self.solver_name if self.backend_factory is None else "custom",
            "num_colors": self.num_colors,
            "stitch_weight": self.stitch_weight,
            "hard_conflicts": self.hard_conflicts,
            "threads": self.threads,
            "time_limit_seconds": self.time_limit_seconds,
        }

    def _create_backend(self) -> MipBackend:
        if self.backend_factory is not None:
            return self.backend_factory()
        return OrToolsBackend(
            solver_name=self.solver_name,
            threads=self.threads,
            time_limit_seconds=self.time_limit_seconds,
        )

    def _check_precolors(self, graph: ConflictGraph) -> None:
        for v, c in sorted(graph.precolors.items()):
            if not 0 <= c < self.num_colors:
                raise ConfigurationError(
                    f"Vertex {v} in {graph.name} is pre-colored {c}, outside [0, {self.num_colors})"
                )

    def color(self, graph: ConflictGraph) -> ColoringResult:
        """
        Color a conflict graph optimally.

        Args:
            graph: The conflict graph to color

        Returns:
            ColoringResult with a color for every vertex

        Raises:
            ConfigurationError: If a preset color is outside [0, num_colors)
            InfeasibleModelError: If no coloring respects the presets
            SolverError: If the backend neither solves nor refutes the model
        """
        self._check_precolors(graph)

        backend = self._create_backend()
        encoding = encode_variables(backend, graph, self.num_colors, self.hard_conflicts)
        num_constraints = build_constraints(backend, graph, encoding, self.num_colors)
        build_objective(backend, graph, encoding, self.stitch_weight)

        _logger.debug(
            "Solving %s: %d variables, %d constraints",
            graph.name,
            len(encoding),
            num_constraints,
        )

        if self.debug_lp_path is not None:
            self.debug_lp_path.parent.mkdir(parents=True, exist_ok=True)
            self.debug_lp_path.write_text(backend.export_lp())
            _logger.debug("Model of %s written to %s", graph.name, self.debug_lp_path)

        # Run solver
        start_time = time.time()
        status = backend.optimize()
        runtime = time.time() - start_time

        if status is BackendStatus.INFEASIBLE:
            _logger.warning("Model for %s is infeasible with k=%d", graph.name, self.num_colors)
            raise InfeasibleModelError(
                f"No {self.num_colors}-coloring of {graph.name} satisfies its pre-coloring and hard conflicts"
            )
        if not status.has_solution:
            raise SolverError(f"Solver returned status {status.value!r} for {graph.name}")

        vertex_colors = self._extract_colors(graph, backend, encoding)
        edge_slacks = self._extract_slacks(graph, backend, encoding, vertex_colors)
        objective = backend.objective_value()

        cost = graph.calc_cost(vertex_colors, self.stitch_weight)
        if not math.isclose(cost, objective, rel_tol=1e-6, abs_tol=1e-6):
            _logger.debug(
                "Objective %g of %s differs from coloring cost %g (status %s)",
                objective,
                graph.name,
                cost,
                status.value,
            )

        _logger.debug("Solved %s: %s, objective %g in %.3fs", graph.name, status.value, objective, runtime)

        return ColoringResult(
            graph_name=graph.name,
            num_vertices=graph.num_vertices,
            num_edges=graph.num_edges,
            num_colors=self.num_colors,
            status=status,
            objective=objective,
            vertex_colors=vertex_colors,
            edge_slacks=edge_slacks,
            runtime_seconds=runtime,
        )

    def _extract_colors(
        self,
        graph: ConflictGraph,
        backend: MipBackend,
        encoding: VariableEncoding,
    ) -> dict[int, int]:
        """Decode vertex colors from the bit values and check them against the presets."""
        vertex_colors = {}
        for v, (b0, b1) in enumerate(encoding.vertex_bits):
            color = bits_to_color(backend.get_value(b0), backend.get_value(b1))
            if not 0 <= color < self.num_colors:
                raise EncodingInvariantError(f"Vertex {v} decoded to color {color}, outside [0, {self.num_colors})")
            preset = graph.precolors.get(v)
            if preset is not None and preset != color:
                raise EncodingInvariantError(f"Vertex {v} decoded to color {color}, but is pre-colored {preset}")
            vertex_colors[v] = color
        return vertex_colors

    def _extract_slacks(
        self,
        graph: ConflictGraph,
        backend: MipBackend,
        encoding: VariableEncoding,
        vertex_colors: dict[int, int],
    ) -> list[float]:
        """Read edge slacks; slacks outside the objective are set from the decoded colors."""
        slacks = []
        for edge, slack in zip(graph.edges, encoding.edge_slacks):
            if edge_cost(edge.weight, self.stitch_weight):
                slacks.append(backend.get_value(slack))
            else:
                # unpriced, so the solver may leave it anywhere in its bounds
                same = vertex_colors[edge.source] == vertex_colors[edge.target]
                slacks.append(1.0 if same else 0.0)
        return slacks

    def verify_solution(self, graph: ConflictGraph, result: ColoringResult) -> bool:
        """
        Verify that a solution is valid.

        Args:
            graph: The conflict graph
            result: The coloring result to verify

        Returns:
            True if every vertex has a color in range, presets are kept and
            the objective equals the cost recomputed from the colors
        """
        colors = result.vertex_colors

        # Check: every vertex colored within [0, k)
        for v in range(graph.num_vertices):
            if not 0 <= colors.get(v, -1) < result.num_colors:
                return False

        # Check: presets untouched
        for v, c in graph.precolors.items():
            if colors[v] != c:
                return False

        cost = graph.calc_cost(colors, self.stitch_weight)
        return math.isclose(cost, result.objective, rel_tol=1e-6, abs_tol=1e-6)
