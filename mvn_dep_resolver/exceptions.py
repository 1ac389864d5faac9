"""Error hierarchy for the resolver.

Only ``ResourceNotFound`` is soft: repository search catches it and moves on to
the next repository. Every other error is fatal for the resolution run that
raised it and propagates unchanged to the caller.
"""

from __future__ import annotations


class ResolverError(Exception):
    """Base exception for all resolver failures."""


class ResourceNotFound(ResolverError):
    """A single repository does not have the requested resource."""

    def __init__(self, url: str) -> None:
        super().__init__(f"resource not found: {url}")
        self.url = url


class ChecksumInvalidError(ResolverError):
    """A downloaded or cached file does not match its published SHA-1."""


class PomParseError(ResolverError):
    """A POM or repository metadata document is malformed."""


class ResolverIOError(ResolverError):
    """Filesystem or transport failure other than an ordinary not-found."""


class CacheIOError(ResolverIOError):
    """The local cache could not be read or written."""


class TransportError(ResolverIOError):
    """A remote repository request failed for a reason other than not-found."""


class RepositoryInconsistentError(TransportError):
    """The repository that served a POM does not have the matching jar."""


class ExhaustedRepositoriesError(ResolverError):
    """No configured repository has the requested resource."""

    def __init__(self, resource: str, repositories: list[str]) -> None:
        tried = ", ".join(repositories) or "<none>"
        super().__init__(f"{resource} not found in any repository (tried: {tried})")
        self.resource = resource
        self.repositories = list(repositories)


class MissingManagedVersionError(ResolverError):
    """A version could not be found in the POM or any of its ancestors."""


class CyclicParentError(ResolverError):
    """A POM parent chain refers back to one of its own descendants."""


class ProjectFileError(ResolverError):
    """The project description file is missing or malformed."""


__all__ = [
    "ResolverError",
    "ResourceNotFound",
    "ChecksumInvalidError",
    "PomParseError",
    "ResolverIOError",
    "CacheIOError",
    "TransportError",
    "RepositoryInconsistentError",
    "ExhaustedRepositoriesError",
    "MissingManagedVersionError",
    "CyclicParentError",
    "ProjectFileError",
]
