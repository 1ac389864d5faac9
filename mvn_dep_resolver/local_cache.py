"""On-disk artifact cache.

Layout mirrors a Maven repository::

    <root>/<group/with/slashes>/<name>/<version>/<name>-<version>.{pom,jar}[.sha1]

Writes land in a temporary file in the target directory and are renamed into
place, so a concurrent run either sees the complete file or no file at all.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .checksum import SIDECAR_EXTENSION
from .exceptions import CacheIOError
from .models import Artifact, ResolutionRecord

_logger = logging.getLogger(__name__)

METADATA_FILE_NAME = "maven-metadata.xml"
_RECORD_EXTENSION = "resolved.json"


class LocalCache:
    """Maps artifacts to files under a cache root."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    # --- paths ---
    def artifact_dir(self, artifact: Artifact) -> Path:
        return self._root.joinpath(*artifact.path.split("/"))

    def pom_path(self, artifact: Artifact) -> Path:
        return self.artifact_dir(artifact) / artifact.file_name("pom")

    def jar_path(self, artifact: Artifact) -> Path:
        return self.artifact_dir(artifact) / artifact.file_name("jar")

    def metadata_path(self, artifact: Artifact) -> Path:
        return self.artifact_dir(artifact) / METADATA_FILE_NAME

    def record_path(self, artifact: Artifact) -> Path:
        return self.artifact_dir(artifact) / artifact.file_name(_RECORD_EXTENSION)

    @staticmethod
    def checksum_path(path: Path) -> Path:
        return path.with_name(f"{path.name}.{SIDECAR_EXTENSION}")

    # --- filesystem operations ---
    def ensure_dir(self, artifact: Artifact) -> Path:
        directory = self.artifact_dir(artifact)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f"cannot create cache directory {directory}: {e}") from e
        return directory

    @staticmethod
    def exists(path: Path) -> bool:
        return path.is_file()

    @staticmethod
    def read_bytes(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise CacheIOError(f"cannot read {path}: {e}") from e

    @classmethod
    def read_text(cls, path: Path) -> str:
        """UTF-8 text with line endings kept exactly as stored."""
        data = cls.read_bytes(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CacheIOError(f"{path} is not valid UTF-8: {e}") from e

    @staticmethod
    def write_bytes(path: Path, data: bytes) -> None:
        fd, tmp_name = _mkstemp_beside(path)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, path)
        except OSError as e:
            _discard(tmp_name)
            raise CacheIOError(f"cannot write {path}: {e}") from e
        _logger.debug("cache write", extra={"path": str(path), "size": len(data)})

    @classmethod
    def write_text(cls, path: Path, text: str) -> None:
        cls.write_bytes(path, text.encode("utf-8"))

    # --- resolution records ---
    def read_record(self, artifact: Artifact) -> Optional[ResolutionRecord]:
        path = self.record_path(artifact)
        if not self.exists(path):
            return None
        try:
            return ResolutionRecord.model_validate_json(self.read_bytes(path))
        except ValidationError:
            # A damaged record only loses the origin hint; the POM itself is intact
            _logger.warning("ignoring unreadable resolution record", extra={"path": str(path)})
            return None

    def write_record(self, artifact: Artifact, record: ResolutionRecord) -> None:
        self.write_text(self.record_path(artifact), record.model_dump_json())


def _mkstemp_beside(path: Path) -> tuple[int, str]:
    try:
        return tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=path.parent)
    except OSError as e:
        raise CacheIOError(f"cannot write {path}: {e}") from e


def _discard(tmp_name: str) -> None:
    try:
        os.unlink(tmp_name)
    except FileNotFoundError:
        pass


__all__ = ["LocalCache", "METADATA_FILE_NAME"]
