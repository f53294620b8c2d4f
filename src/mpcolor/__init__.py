"""
Multi-patterning coloring (mpcolor)

This package provides an exact ILP coloring of conflict graphs with
stitch edges for multi-patterning layout decomposition.
"""

from .backend import BackendStatus, MipBackend, OrToolsBackend, Sense
from .encoding import bits_to_color, color_to_bits
from .errors import (
    ColoringError,
    ConfigurationError,
    EncodingInvariantError,
    InfeasibleModelError,
    SolverError,
)
from .graph import ConflictGraph, Edge
from .ilp_coloring import ColoringResult, ILPColoring

__all__ = [
    # Graph
    "ConflictGraph",
    "Edge",
    # ILP Coloring
    "ILPColoring",
    "ColoringResult",
    # Solver backend
    "MipBackend",
    "OrToolsBackend",
    "BackendStatus",
    "Sense",
    # Encoding
    "color_to_bits",
    "bits_to_color",
    # Errors
    "ColoringError",
    "ConfigurationError",
    "InfeasibleModelError",
    "SolverError",
    "EncodingInvariantError",
]
