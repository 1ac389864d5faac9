"""Artifact resolution: the orchestrator.

For every artifact, depth-first:

1. make sure its cache directory exists;
2. find its POM (cache first, then each repository in order, expanding
   snapshot versions through ``maven-metadata.xml``);
3. verify the POM against its ``.sha1`` sidecar;
4. parse it, resolving the parent chain first;
5. fetch and verify the jar from the repository that served the POM;
6. recurse into the effective dependencies.

Any error aborts the whole run. Files already written stay in the cache.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .checksum import SIDECAR_EXTENSION, decode_checksum, validate_checksum
from .config import Settings
from .exceptions import (
    ChecksumInvalidError,
    CyclicParentError,
    ExhaustedRepositoriesError,
    PomParseError,
    RepositoryInconsistentError,
    ResourceNotFound,
)
from .local_cache import LocalCache
from .models import Artifact, PomLookupResult, Project, ResolutionRecord, ResolvedArtifact
from .pom import PomView, parse_pom
from .repository_search import fetch_first, fetch_optional, resource_url
from .snapshot import resolve_snapshot_version
from .transport import RepositoryHttpClient, check_repository_url

_logger = logging.getLogger(__name__)

# Packaging types that publish no binary next to the POM
_POM_ONLY_PACKAGING = frozenset({"pom"})


class ResolutionState(str, Enum):
    UNRESOLVED = "UNRESOLVED"
    POM_LOOKUP = "POM_LOOKUP"
    POM_VERIFIED = "POM_VERIFIED"
    JAR_LOOKUP = "JAR_LOOKUP"
    JAR_VERIFIED = "JAR_VERIFIED"
    DEPENDENCIES_EXPANDING = "DEPENDENCIES_EXPANDING"
    DONE = "DONE"
    # terminal failures
    POM_NOT_FOUND = "POM_NOT_FOUND"
    CHECKSUM_INVALID = "CHECKSUM_INVALID"
    PARSE_FAILED = "PARSE_FAILED"
    FAILED = "FAILED"


def _failure_state(exc: BaseException) -> ResolutionState:
    if isinstance(exc, ExhaustedRepositoriesError):
        return ResolutionState.POM_NOT_FOUND
    if isinstance(exc, ChecksumInvalidError):
        return ResolutionState.CHECKSUM_INVALID
    if isinstance(exc, PomParseError):
        return ResolutionState.PARSE_FAILED
    return ResolutionState.FAILED


def _unique(repositories: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for repo in repositories:
        seen.setdefault(repo, None)
    return list(seen)


class ArtifactResolver:
    """Resolves artifacts and their transitive dependencies into a LocalCache.

    Use as a context manager to close the HTTP client it creates.
    """

    def __init__(
        self,
        repositories: Sequence[str] | None = None,
        settings: Settings | None = None,
        *,
        cache: LocalCache | None = None,
        client: RepositoryHttpClient | None = None,
    ) -> None:
        s = settings or Settings()
        repos = _unique(repositories) if repositories else [s.default_repository]
        self._repositories = [check_repository_url(r, s.ALLOW_INSECURE_REPOSITORIES) for r in repos]
        self._cache = cache or LocalCache(s.CACHE_ROOT)
        self._owns_client = client is None
        self._client = client or RepositoryHttpClient(s)

        # Per-run traversal state, reset by resolve()
        self._resolved: dict[Artifact, ResolvedArtifact] = {}
        self._in_progress: set[Artifact] = set()
        self._poms: dict[Artifact, tuple[PomLookupResult, PomView]] = {}
        self._loading: list[Artifact] = []

    @classmethod
    def for_project(
        cls,
        project: Project,
        settings: Settings | None = None,
        **kwargs: object,
    ) -> "ArtifactResolver":
        return cls(project.repositories, settings, **kwargs)  # type: ignore[arg-type]

    @property
    def repositories(self) -> list[str]:
        return list(self._repositories)

    @property
    def cache(self) -> LocalCache:
        return self._cache

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ArtifactResolver":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- public API ---
    def resolve(self, artifacts: Iterable[Artifact]) -> list[ResolvedArtifact]:
        """Resolve ``artifacts`` and everything they depend on.

        Returns one entry per artifact reached, in depth-first completion
        order. Raises the first ResolverError encountered.
        """
        self._resolved = {}
        self._in_progress = set()
        self._poms = {}
        self._loading = []
        for artifact in artifacts:
            self._visit(artifact)
        return list(self._resolved.values())

    def lookup_verified_pom(self, artifact: Artifact) -> PomLookupResult:
        """Find the POM for ``artifact`` and verify its checksum.

        A downloaded POM is written to the cache only after it verifies.
        """
        self._cache.ensure_dir(artifact)
        pom_path = self._cache.pom_path(artifact)
        cached = self._cache.exists(pom_path)
        lookup = self._cached_pom(artifact, pom_path) if cached else self._download_pom(artifact)

        repository = lookup.repository or self._repositories[0]
        self._verify(
            pom_path,
            lookup.pom_data,
            self._remote_url(repository, artifact, "pom", lookup.resolved_version),
        )
        if not cached:
            self._cache.write_bytes(pom_path, lookup.pom_data)
            self._cache.write_record(
                artifact,
                ResolutionRecord(repository=repository, resolved_version=lookup.resolved_version),
            )
        return lookup

    # --- traversal ---
    def _transition(self, artifact: Artifact, state: ResolutionState) -> None:
        _logger.debug("%s -> %s", artifact.coordinates, state.value, extra={"artifact": artifact.coordinates})

    def _visit(self, artifact: Artifact) -> None:
        if artifact in self._resolved or artifact in self._in_progress:
            _logger.debug("already visited %s", artifact.coordinates)
            return
        self._in_progress.add(artifact)
        self._transition(artifact, ResolutionState.UNRESOLVED)
        try:
            self._transition(artifact, ResolutionState.POM_LOOKUP)
            lookup, view = self._load(artifact)
            self._transition(artifact, ResolutionState.POM_VERIFIED)

            jar_path: Optional[Path] = None
            if view.packaging not in _POM_ONLY_PACKAGING:
                self._transition(artifact, ResolutionState.JAR_LOOKUP)
                jar_path = self._resolve_jar(artifact, lookup)
                self._transition(artifact, ResolutionState.JAR_VERIFIED)

            self._transition(artifact, ResolutionState.DEPENDENCIES_EXPANDING)
            for dependency in view.dependencies():
                self._visit(dependency)
        except Exception as e:
            self._transition(artifact, _failure_state(e))
            raise
        finally:
            self._in_progress.discard(artifact)

        self._resolved[artifact] = ResolvedArtifact(
            artifact=artifact,
            repository=lookup.repository,
            resolved_version=lookup.resolved_version,
            pom_path=self._cache.pom_path(artifact),
            jar_path=jar_path,
        )
        self._transition(artifact, ResolutionState.DONE)

    def _load(self, artifact: Artifact) -> tuple[PomLookupResult, PomView]:
        """Verified POM plus its view, parents resolved first; memoized per run."""
        known = self._poms.get(artifact)
        if known is not None:
            return known
        if artifact in self._loading:
            chain = " -> ".join(a.coordinates for a in [*self._loading, artifact])
            raise CyclicParentError(f"cyclic parent chain: {chain}")

        self._loading.append(artifact)
        try:
            lookup = self.lookup_verified_pom(artifact)
            pom = parse_pom(lookup.pom_data)
            parent_view: Optional[PomView] = None
            if pom.parent is not None:
                _, parent_view = self._load(pom.parent.to_artifact())
        finally:
            self._loading.pop()

        loaded = (lookup, PomView(pom, parent_view))
        self._poms[artifact] = loaded
        return loaded

    # --- POM lookup ---
    def _cached_pom(self, artifact: Artifact, pom_path: Path) -> PomLookupResult:
        # raw bytes: the sidecar digest covers the file exactly as published
        data = self._cache.read_bytes(pom_path)
        record = self._cache.read_record(artifact)
        _logger.debug("POM cache hit", extra={"artifact": artifact.coordinates})
        if record is None:
            return PomLookupResult(pom_data=data)
        return PomLookupResult(
            pom_data=data,
            repository=record.repository,
            resolved_version=record.resolved_version,
        )

    def _download_pom(self, artifact: Artifact) -> PomLookupResult:
        resolved_versions: dict[str, Optional[str]] = {}

        def locate(repository: str) -> Optional[str]:
            version: Optional[str] = None
            if artifact.is_snapshot:
                version = resolve_snapshot_version(self._client, self._cache, repository, artifact)
                if version is None:
                    return None
            resolved_versions[repository] = version
            return f"{artifact.path}/{artifact.file_name('pom', version)}"

        _logger.info("Downloading POM for %s", artifact.coordinates)
        repository, body = fetch_first(
            self._client,
            self._repositories,
            locate,
            resource=f"POM for {artifact.coordinates}",
        )
        resolved_version = resolved_versions[repository]
        _logger.info("Downloaded %s", self._remote_url(repository, artifact, "pom", resolved_version))
        return PomLookupResult(pom_data=body, repository=repository, resolved_version=resolved_version)

    # --- jar lookup ---
    def _resolve_jar(self, artifact: Artifact, lookup: PomLookupResult) -> Path:
        jar_path = self._cache.jar_path(artifact)
        if self._cache.exists(jar_path):
            self._verify_cached(jar_path)
            return jar_path

        if lookup.repository is not None:
            url = self._remote_url(lookup.repository, artifact, "jar", lookup.resolved_version)
            _logger.info("Downloading %s", url)
            try:
                body = self._client.fetch(url)
            except ResourceNotFound as e:
                raise RepositoryInconsistentError(
                    f"{url} not found although {lookup.repository} "
                    f"served the POM for {artifact.coordinates}"
                ) from e
        else:
            # Origin unknown: search with the declared version
            _logger.info("Downloading jar for %s", artifact.coordinates)
            repository, body = fetch_first(
                self._client,
                self._repositories,
                lambda _repo: f"{artifact.path}/{artifact.file_name('jar')}",
                resource=f"jar for {artifact.coordinates}",
            )
            url = self._remote_url(repository, artifact, "jar")
        _logger.info("Downloaded %s", url)

        self._verify(jar_path, body, url)
        self._cache.write_bytes(jar_path, body)
        return jar_path

    # --- checksums ---
    def _verify(self, local_path: Path, data: bytes, remote_url: str) -> None:
        """Check ``data`` against the sidecar of ``local_path``.

        The sidecar is read from disk when present, otherwise fetched from
        ``<remote_url>.sha1`` and stored once ``data`` matches it. No sidecar
        anywhere: accepted unverified.
        """
        sidecar_path = LocalCache.checksum_path(local_path)
        if self._cache.exists(sidecar_path):
            _check(data, self._cache.read_bytes(sidecar_path), remote_url)
            return

        raw = fetch_optional(self._client, f"{remote_url}.{SIDECAR_EXTENSION}")
        if raw is None:
            _logger.warning("No checksum published for %s; accepting it unverified", remote_url)
            return
        _check(data, raw, remote_url)
        self._cache.write_bytes(sidecar_path, raw)

    def _verify_cached(self, local_path: Path) -> None:
        """Re-check a cached file against its cached sidecar, if it has one."""
        sidecar_path = LocalCache.checksum_path(local_path)
        if not self._cache.exists(sidecar_path):
            return
        _check(
            self._cache.read_bytes(local_path),
            self._cache.read_bytes(sidecar_path),
            str(local_path),
        )

    @staticmethod
    def _remote_url(
        repository: str,
        artifact: Artifact,
        extension: str,
        resolved_version: Optional[str] = None,
    ) -> str:
        return resource_url(repository, f"{artifact.path}/{artifact.file_name(extension, resolved_version)}")


def _check(data: bytes, sidecar: bytes, location: str) -> None:
    try:
        expected = decode_checksum(sidecar)
    except ChecksumInvalidError as e:
        raise ChecksumInvalidError(f"SHA1 checksum for {location} is unreadable: {e}") from e
    if not validate_checksum(data, expected):
        raise ChecksumInvalidError(f"SHA1 checksum for {location} is not valid")
    _logger.debug("checksum verified", extra={"url": location})


def resolve_project(
    project: Project,
    settings: Settings | None = None,
    *,
    include_test: bool = True,
) -> list[ResolvedArtifact]:
    """Resolve all root artifacts of ``project`` into the configured cache."""
    with ArtifactResolver.for_project(project, settings) as resolver:
        return resolver.resolve(project.root_artifacts(include_test=include_test))


__all__ = ["ArtifactResolver", "ResolutionState", "resolve_project"]
