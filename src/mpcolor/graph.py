"""
Conflict graph data structure and parsers.

Edge weights carry the edge kind:
- weight >= 0: conflict edge, endpoints should receive different colors
- weight < 0: stitch edge, endpoints should receive the same color

Instance file format:
- Line 1: n (number of vertices, numbered 0 to n-1)
- Line 2: m (number of edges)
- Next m lines: edges as "u v weight" triples
- Remaining lines: preset colors as "v color" pairs (optional)
"""

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import networkx as nx


@dataclass(frozen=True)
class Edge:
    """A weighted edge; the sign of the weight decides its kind."""

    source: int
    target: int
    weight: int

    @property
    def is_stitch(self) -> bool:
        return self.weight < 0

    @property
    def is_conflict(self) -> bool:
        return self.weight >= 0


@dataclass
class ConflictGraph:
    """Conflict/stitch graph with optional pre-colored vertices."""

    name: str
    num_vertices: int
    edges: list[Edge]
    precolors: dict[int, int] = field(default_factory=dict)

    # Original node labels when built from another graph library, indexed by vertex
    labels: Optional[list[Hashable]] = field(default=None, repr=False)

    def __post_init__(self):
        self.edges = [e if isinstance(e, Edge) else Edge(*e) for e in self.edges]
        self._validate()

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    @classmethod
    def from_file(cls, filepath: str | Path) -> "ConflictGraph":
        """
        Parse a conflict graph from a file.

        Args:
            filepath: Path to the graph file

        Returns:
            ConflictGraph object

        Raises:
            ValueError: If the file format is invalid
        """
        filepath = Path(filepath)

        with open(filepath, "r") as f:
            lines = [line.strip() for line in f.readlines()]

        # Remove empty lines at the end
        while lines and not lines[-1]:
            lines.pop()

        if len(lines) < 2:
            raise ValueError(f"Invalid graph file: {filepath} - too few lines")

        try:
            n = int(lines[0])  # vertices
            m = int(lines[1])  # edges
        except ValueError as e:
            raise ValueError(f"Invalid header in {filepath}: {e}")

        edges = []
        edge_start = 2
        for i in range(edge_start, edge_start + m):
            if i >= len(lines):
                raise ValueError(f"Missing edge on line {i + 1} in {filepath}")
            parts = lines[i].split()
            if len(parts) != 3:
                raise ValueError(f"Invalid edge format on line {i + 1} in {filepath}")
            try:
                u, v, w = int(parts[0]), int(parts[1]), int(parts[2])
            except ValueError as e:
                raise ValueError(f"Invalid edge on line {i + 1} in {filepath}: {e}")
            edges.append(Edge(u, v, w))

        precolors = {}
        for i in range(edge_start + m, len(lines)):
            parts = lines[i].split()
            if not parts:
                continue
            if len(parts) != 2:
                raise ValueError(f"Invalid preset color on line {i + 1} in {filepath}")
            try:
                v, c = int(parts[0]), int(parts[1])
            except ValueError as e:
                raise ValueError(f"Invalid preset color on line {i + 1} in {filepath}: {e}")
            if v in precolors:
                raise ValueError(f"Vertex {v} pre-colored twice in {filepath}")
            precolors[v] = c

        return cls(name=filepath.stem, num_vertices=n, edges=edges, precolors=precolors)

    @classmethod
    def from_networkx(
        cls,
        G: nx.Graph,
        weight: str = "weight",
        color: str = "color",
        name: Optional[str] = None,
    ) -> "ConflictGraph":
        """
        Build a conflict graph from a networkx graph.

        Nodes are indexed in G's iteration order. Edges without a weight
        attribute are conflict edges of weight 1; nodes carrying the color
        attribute are pre-colored.
        """
        if G.is_directed() or G.is_multigraph():
            raise ValueError("Conflict graphs must be simple undirected graphs")

        labels = list(G.nodes())
        index = {label: i for i, label in enumerate(labels)}

        edges = []
        for u, v, data in G.edges(data=True):
            w = data.get(weight, 1)
            if int(w) != w:
                raise ValueError(f"Edge ({u}, {v}) has non-integer weight {w!r}")
            edges.append(Edge(index[u], index[v], int(w)))

        precolors = {index[node]: c for node, c in G.nodes(data=color) if c is not None}

        return cls(
            name=name if name is not None else (G.name or "graph"),
            num_vertices=len(labels),
            edges=edges,
            precolors=precolors,
            labels=labels,
        )

    def _validate(self):
        """Validate graph consistency."""
        if self.num_vertices < 0:
            raise ValueError(f"Negative vertex count in {self.name}: {self.num_vertices}")

        for e in self.edges:
            if not (0 <= e.source < self.num_vertices and 0 <= e.target < self.num_vertices):
                raise ValueError(f"Invalid vertex in edge ({e.source}, {e.target}) in {self.name}")
            if e.source == e.target:
                raise ValueError(f"Self-loop on vertex {e.source} in {self.name}")
            if isinstance(e.weight, bool) or not isinstance(e.weight, int):
                raise ValueError(f"Non-integer weight {e.weight!r} on edge ({e.source}, {e.target}) in {self.name}")

        for v, c in self.precolors.items():
            if not (0 <= v < self.num_vertices):
                raise ValueError(f"Invalid pre-colored vertex {v} in {self.name}")
            if isinstance(c, bool) or not isinstance(c, int) or c < 0:
                raise ValueError(f"Invalid preset color {c!r} for vertex {v} in {self.name}")

        if self.labels is not None and len(self.labels) != self.num_vertices:
            raise ValueError(f"Label count mismatch in {self.name}: expected {self.num_vertices}, got {len(self.labels)}")

    def precolor(self, vertex: int, color: int) -> None:
        """Fix the color of a vertex before solving."""
        if not (0 <= vertex < self.num_vertices):
            raise ValueError(f"Invalid vertex {vertex} in {self.name}")
        if isinstance(color, bool) or not isinstance(color, int) or color < 0:
            raise ValueError(f"Invalid preset color {color!r} for vertex {vertex} in {self.name}")
        self.precolors[vertex] = color

    def conflict_edges(self) -> list[Edge]:
        return [e for e in self.edges if e.is_conflict]

    def stitch_edges(self) -> list[Edge]:
        return [e for e in self.edges if e.is_stitch]

    def check_edge_weight(self, lb: int, ub: int) -> bool:
        """Check that every edge weight lies in [lb, ub]."""
        return all(lb <= e.weight <= ub for e in self.edges)

    def calc_cost(self, colors: Mapping[int, int], stitch_weight: float) -> float:
        """
        Compute the weighted cost of a color assignment.

        Conflict edges cost their weight when both endpoints share a color;
        stitch edges cost stitch_weight * |weight| when the endpoints differ.

        Args:
            colors: Color of every vertex
            stitch_weight: Multiplier applied to stitch edge weights

        Returns:
            Total cost of the assignment
        """
        missing = [v for v in range(self.num_vertices) if v not in colors]
        if missing:
            raise ValueError(f"Vertices {missing} not colored in {self.name}")

        cost = 0.0
        for e in self.edges:
            same = colors[e.source] == colors[e.target]
            if e.is_conflict and same:
                cost += e.weight
            elif e.is_stitch and not same:
                cost += stitch_weight * -e.weight
        return cost

    def label_colors(self, colors: Mapping[int, int]) -> dict[Hashable, int]:
        """Map vertex-indexed colors back to the original node labels."""
        if self.labels is None:
            return dict(colors)
        return {self.labels[v]: c for v, c in colors.items()}

    def __str__(self) -> str:
        return (
            f"ConflictGraph({self.name}: n={self.num_vertices}, "
            f"conflicts={len(self.conflict_edges())}, stitches={len(self.stitch_edges())}, "
            f"precolored={len(self.precolors)})"
        )
