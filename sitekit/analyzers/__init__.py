"""Source analyzers used while ordering page assets."""

from __future__ import annotations

from .scripts import ScriptAnalysis, ScriptDependencyAnalyzer

__all__ = ["ScriptAnalysis", "ScriptDependencyAnalyzer"]
