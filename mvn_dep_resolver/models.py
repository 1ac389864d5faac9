"""Pydantic domain models.

Artifacts and projects are immutable values built once per run. The lookup
and record models carry what the resolver learns about where a POM came from,
so the matching jar can be fetched from the same place later.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SNAPSHOT_SUFFIX = "-SNAPSHOT"

# Generous upper bound for a single coordinate part; real ones are < 100 chars.
_COORD_PART_MAX_LEN = 200


def _check_coordinate_part(value: str) -> str:
    v = value.strip()
    if not v:
        raise ValueError("must not be empty")
    # Coordinates become cache directories; refuse anything that could escape them
    if "/" in v or "\\" in v:
        raise ValueError("contains illegal path characters")
    return v


def _check_path_segment(value: str) -> str:
    v = _check_coordinate_part(value)
    if v in (".", ".."):
        raise ValueError("must not be a relative path segment")
    return v


def _check_group(value: str) -> str:
    v = _check_coordinate_part(value)
    # each dot-separated part becomes one directory
    if any(not segment for segment in v.split(".")):
        raise ValueError("contains an empty group segment")
    return v


class Artifact(BaseModel):
    """A uniquely versioned component identified by (group, name, version)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    group: str = Field(..., min_length=1, max_length=_COORD_PART_MAX_LEN)
    name: str = Field(..., min_length=1, max_length=_COORD_PART_MAX_LEN)
    version: str = Field(..., min_length=1, max_length=_COORD_PART_MAX_LEN)

    @field_validator("group")
    @classmethod
    def _validate_group(cls, v: str) -> str:
        return _check_group(v)

    @field_validator("name", "version")
    @classmethod
    def _validate_segment(cls, v: str) -> str:
        return _check_path_segment(v)

    @classmethod
    def of(cls, group: str, name: str, version: str) -> "Artifact":
        return cls(group=group, name=name, version=version)

    @property
    def path(self) -> str:
        """Repository-relative directory, e.g. ``org/hamcrest/hamcrest-core/1.1``."""
        return f"{self.group.replace('.', '/')}/{self.name}/{self.version}"

    @property
    def is_snapshot(self) -> bool:
        return self.version.endswith(SNAPSHOT_SUFFIX)

    @property
    def coordinates(self) -> str:
        return f"{self.group}:{self.name}:{self.version}"

    def file_name(self, extension: str, version: Optional[str] = None) -> str:
        """``<name>-<version>.<extension>``; ``version`` overrides the declared one."""
        return f"{self.name}-{version or self.version}.{extension}"

    def __str__(self) -> str:
        return self.coordinates


class Project(BaseModel):
    """A project description: its own coordinates, root artifacts and repositories.

    ``repositories`` is ordered by search priority.
    """

    model_config = ConfigDict(frozen=True)

    group: str
    name: str
    version: str
    main_dependencies: list[Artifact] = Field(default_factory=list)
    test_dependencies: list[Artifact] = Field(default_factory=list)
    repositories: list[str] = Field(default_factory=list)
    project_root: Optional[Path] = None

    def root_artifacts(self, include_test: bool = True) -> list[Artifact]:
        if include_test:
            return [*self.main_dependencies, *self.test_dependencies]
        return list(self.main_dependencies)


class PomLookupResult(BaseModel):
    """A POM document plus where it was found.

    ``pom_data`` holds the bytes exactly as published; checksums are computed
    over them and the XML parser decodes them per the document's declared
    encoding. ``repository`` is None when the POM came from the local cache
    without a resolution record; ``resolved_version`` is None unless a
    snapshot was expanded.
    """

    model_config = ConfigDict(frozen=True)

    pom_data: bytes
    repository: Optional[str] = None
    resolved_version: Optional[str] = None


class ResolutionRecord(BaseModel):
    """Persisted next to a downloaded POM so cache hits keep their origin."""

    model_config = ConfigDict(extra="ignore")

    repository: str
    resolved_version: Optional[str] = None


class ResolvedArtifact(BaseModel):
    """One artifact reached by a resolution run, with its cached files."""

    model_config = ConfigDict(frozen=True)

    artifact: Artifact
    repository: Optional[str] = None
    resolved_version: Optional[str] = None
    pom_path: Path
    jar_path: Optional[Path] = None


# Tool response models (returned by the MCP tools).


class ResolutionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    roots: list[Artifact]
    repositories: list[str]
    cache_root: Path
    artifacts: list[ResolvedArtifact]


__all__ = [
    "SNAPSHOT_SUFFIX",
    "ResolutionResponse",
    "Artifact",
    "Project",
    "PomLookupResult",
    "ResolutionRecord",
    "ResolvedArtifact",
]
