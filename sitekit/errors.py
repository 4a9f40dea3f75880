"""Exception hierarchy raised by the build engine."""

from __future__ import annotations

from pathlib import Path


class SiteKitError(RuntimeError):
    """Base class for unrecoverable build failures.

    ``source`` names the project file that triggered the failure, when one is
    known, and is folded into the string form so CLI output points at it.
    """

    def __init__(self, message: str, *, source: Path | str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = Path(source) if source is not None else None

    def __str__(self) -> str:
        if self.source is None:
            return self.message
        return f"{self.source}: {self.message}"


BuildError = SiteKitError


class ConfigError(SiteKitError):
    """Raised when project.yml cannot be parsed or holds invalid values."""


class ResolutionError(SiteKitError):
    """A resource reference could not be turned into a value."""


class MissingResourceError(ResolutionError):
    """No variable store or media directory defines the reference."""


class CompositionError(SiteKitError):
    """Template or widget composition failed."""


class DependencyAnalysisError(SiteKitError):
    """A script source could not be analyzed."""


class DependencyCycleError(DependencyAnalysisError):
    """Scripts depend on each other at load time."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__("strong script dependency cycle: " + " -> ".join(cycle))
        self.cycle = list(cycle)


class BuildTargetError(SiteKitError):
    """Destination naming or writing failed."""


__all__ = [
    "BuildError",
    "BuildTargetError",
    "CompositionError",
    "ConfigError",
    "DependencyAnalysisError",
    "DependencyCycleError",
    "MissingResourceError",
    "ResolutionError",
    "SiteKitError",
]
