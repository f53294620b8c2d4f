"""Exceptions raised while formulating or solving a coloring."""


class ColoringError(Exception):
    """Base class for all coloring failures."""


class ConfigurationError(ColoringError, ValueError):
    """Invalid solver settings or preset colors, rejected before formulation."""


class InfeasibleModelError(ColoringError):
    """The MIP has no feasible point for this graph, pre-coloring and color count."""


class SolverError(ColoringError):
    """The backend failed or returned neither a solution nor an infeasibility proof."""


class EncodingInvariantError(ColoringError, AssertionError):
    """A decoded solution contradicts the bit encoding or a preset color."""
