"""Snapshot version expansion via ``maven-metadata.xml``.

A remote ``1.2.3-SNAPSHOT`` directory holds files named after a concrete
timestamped build, e.g. ``lib-1.2.3-20230101.120000-7.pom``. The metadata's
``versioning/snapshot`` section says which build is current.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional, Union

from .exceptions import PomParseError
from .local_cache import METADATA_FILE_NAME, LocalCache
from .models import SNAPSHOT_SUFFIX, Artifact
from .pom import child_text, find_child, local_name, parse_xml
from .repository_search import fetch_optional, resource_url
from .transport import RepositoryHttpClient

_logger = logging.getLogger(__name__)

_SNAPSHOT_QUALIFIER = SNAPSHOT_SUFFIX.lstrip("-")


class SnapshotInfo(NamedTuple):
    timestamp: str
    build_number: str

    @property
    def qualifier(self) -> str:
        """``<timestamp>-<buildNumber>``, the part that replaces ``SNAPSHOT``."""
        return f"{self.timestamp}-{self.build_number}"


def parse_snapshot_metadata(metadata_xml: Union[str, bytes]) -> SnapshotInfo:
    root = parse_xml(metadata_xml, "maven-metadata.xml")
    if local_name(root.tag) != "metadata":
        raise PomParseError(f"expected <metadata> root element, found <{local_name(root.tag)}>")
    versioning = find_child(root, "versioning")
    snapshot = find_child(versioning, "snapshot") if versioning is not None else None
    if snapshot is None:
        raise PomParseError("maven-metadata.xml has no versioning/snapshot section")
    timestamp = child_text(snapshot, "timestamp")
    build_number = child_text(snapshot, "buildNumber")
    if not timestamp or not build_number:
        raise PomParseError("maven-metadata.xml snapshot lacks timestamp or buildNumber")
    return SnapshotInfo(timestamp=timestamp, build_number=build_number)


def expand_snapshot_version(version: str, info: SnapshotInfo) -> str:
    """``1.0-SNAPSHOT`` -> ``1.0-20230101.120000-7``."""
    if not version.endswith(SNAPSHOT_SUFFIX):
        raise ValueError(f"{version} is not a snapshot version")
    return version[: -len(_SNAPSHOT_QUALIFIER)] + info.qualifier


def resolve_snapshot_version(
    client: RepositoryHttpClient,
    cache: LocalCache,
    repository: str,
    artifact: Artifact,
) -> Optional[str]:
    """Concrete version of a snapshot artifact in ``repository``.

    Returns None when the repository has no metadata for it, so the caller can
    try the next repository. The metadata is written to the cache but never
    read back.
    """
    url = resource_url(repository, f"{artifact.path}/{METADATA_FILE_NAME}")
    body = fetch_optional(client, url)
    if body is None:
        _logger.debug("no snapshot metadata", extra={"url": url})
        return None
    cache.ensure_dir(artifact)
    cache.write_bytes(cache.metadata_path(artifact), body)

    resolved = expand_snapshot_version(artifact.version, parse_snapshot_metadata(body))
    _logger.info("Resolved snapshot %s to %s", artifact.coordinates, resolved)
    return resolved


__all__ = [
    "SnapshotInfo",
    "parse_snapshot_metadata",
    "expand_snapshot_version",
    "resolve_snapshot_version",
]
