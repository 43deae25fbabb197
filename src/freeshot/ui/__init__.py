"""Interactive lasso selection UI."""

from .overlay import LassoWindow, run_interactive

__all__ = ["LassoWindow", "run_interactive"]
