"""Per-run lookup stores."""

from .variables import VariableRegistry, VariableStore

__all__ = ["VariableRegistry", "VariableStore"]
