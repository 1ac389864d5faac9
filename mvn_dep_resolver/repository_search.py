"""Ordered multi-repository lookup: the first repository that has it wins."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from .exceptions import ExhaustedRepositoriesError, ResourceNotFound
from .transport import RepositoryHttpClient

_logger = logging.getLogger(__name__)

# Given a repository base URL, return the repository-relative path of the
# resource, or None when it cannot be addressed there.
Locator = Callable[[str], Optional[str]]


def resource_url(repository: str, relative_path: str) -> str:
    return f"{repository.rstrip('/')}/{relative_path.lstrip('/')}"


def fetch_first(
    client: RepositoryHttpClient,
    repositories: Sequence[str],
    locate: Locator,
    *,
    resource: str,
) -> tuple[str, bytes]:
    """Try each repository in order and return ``(repository, body)``.

    A repository that answers not-found (or cannot address the resource) is
    skipped. Transport failures propagate immediately. ``resource`` names what
    was looked for in the ExhaustedRepositoriesError.
    """
    for repository in repositories:
        relative = locate(repository)
        if relative is None:
            _logger.debug("resource not addressable", extra={"repository": repository, "resource": resource})
            continue
        url = resource_url(repository, relative)
        try:
            body = client.fetch(url)
        except ResourceNotFound:
            _logger.debug("not found, trying next repository", extra={"url": url})
            continue
        return repository, body
    raise ExhaustedRepositoriesError(resource, list(repositories))


def fetch_optional(client: RepositoryHttpClient, url: str) -> Optional[bytes]:
    """Fetch a single URL, mapping not-found to None."""
    try:
        return client.fetch(url)
    except ResourceNotFound:
        return None


__all__ = ["Locator", "resource_url", "fetch_first", "fetch_optional"]
