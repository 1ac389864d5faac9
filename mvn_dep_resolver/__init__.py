"""Top-level package for mvn-dep-resolver.

Exports the resolver entry points and the centralized logging configuration.
"""

from .config import Settings
from .logging_config import configure_logging  # re-export for convenience
from .models import Artifact, Project, ResolvedArtifact
from .resolver import ArtifactResolver, resolve_project

__all__ = [
    "Artifact",
    "ArtifactResolver",
    "Project",
    "ResolvedArtifact",
    "Settings",
    "configure_logging",
    "resolve_project",
]
