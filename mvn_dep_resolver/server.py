"""MCP STDIO server exposing dependency resolution as tools.

Design notes:
- Transport adapter stays thin; the ``*_core`` functions hold the logic and
  are what the tests exercise.
- Resolver errors surface as ValueError so the MCP layer reports a tool error
  with a message naming the offending coordinates or URL.
- Logging goes to stderr via the central logging config.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastmcp import FastMCP

from .config import Settings
from .exceptions import ResolverError
from .logging_config import configure_logging
from .models import Artifact, ResolutionResponse
from .project import load_project
from .resolver import ArtifactResolver

_logger = logging.getLogger(__name__)


def _resolve(
    roots: list[Artifact],
    repositories: Optional[list[str]],
    settings: Settings,
) -> ResolutionResponse:
    try:
        with ArtifactResolver(repositories, settings) as resolver:
            resolved = resolver.resolve(roots)
            repos = resolver.repositories
    except ResolverError as e:
        _logger.error("resolution failed: %s", e)
        raise ValueError(str(e)) from e
    return ResolutionResponse(
        roots=roots,
        repositories=repos,
        cache_root=settings.CACHE_ROOT,
        artifacts=resolved,
    )


def resolve_artifact_core(
    *,
    group_id: str,
    artifact_id: str,
    version: str,
    repositories: Optional[list[str]] = None,
    settings: Settings | None = None,
) -> ResolutionResponse:
    """Resolve one artifact and its transitive dependencies into the cache.

    ``repositories`` defaults to the configured default repository; when given,
    the default repository is still searched first.
    """
    s = settings or Settings()
    try:
        root = Artifact.of(group_id, artifact_id, version)
    except ValueError as e:
        raise ValueError(f"invalid coordinates {group_id}:{artifact_id}:{version}") from e
    repos = [s.default_repository, *(repositories or [])]
    _logger.info("resolving artifact", extra={"op": "resolve_artifact", "artifact": root.coordinates})
    return _resolve([root], repos, s)


def resolve_project_core(
    *,
    project_file: str,
    include_test: bool = True,
    settings: Settings | None = None,
) -> ResolutionResponse:
    """Resolve every root dependency declared in a project file."""
    s = settings or Settings()
    try:
        project = load_project(Path(project_file), s)
    except ResolverError as e:
        raise ValueError(str(e)) from e
    _logger.info("resolving project", extra={"op": "resolve_project", "project": project.name})
    return _resolve(project.root_artifacts(include_test=include_test), project.repositories, s)


_server = FastMCP("mvn-dep-resolver")


@_server.tool()
def resolve_artifact(
    group_id: str,
    artifact_id: str,
    version: str,
    repositories: Optional[list[str]] = None,
) -> dict:
    """Download and verify an artifact and all its dependencies into the local cache."""

    result = resolve_artifact_core(
        group_id=group_id,
        artifact_id=artifact_id,
        version=version,
        repositories=repositories,
    )
    return result.model_dump(mode="json")


@_server.tool()
def resolve_project(project_file: str, include_test: bool = True) -> dict:
    """Resolve all dependencies declared in a Jargo.toml project file."""

    result = resolve_project_core(project_file=project_file, include_test=include_test)
    return result.model_dump(mode="json")


def run() -> None:  # pragma: no cover
    s = Settings()
    configure_logging(s.LOG_LEVEL, json_logs=s.LOG_JSON)
    _server.run()


__all__ = [
    "resolve_artifact_core",
    "resolve_project_core",
    "run",
]
