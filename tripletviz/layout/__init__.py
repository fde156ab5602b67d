"""Layout solver collaborators."""

from .solver import LayoutSolver, SpringLayoutSolver, check_edge_length

__all__ = ["LayoutSolver", "SpringLayoutSolver", "check_edge_length"]
