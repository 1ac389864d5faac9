"""Load a ``Jargo.toml`` project description into a ``Project``.

Example::

    [package]
    group = "com.example"
    name = "demo"
    version = "0.1.0"

    [dependencies]
    "org.hamcrest:hamcrest-core" = "1.1"

    [test-dependencies]
    "junit:junit" = "4.13.2"

    [repositories]
    internal = { url = "https://repo.example.com/maven2" }
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from .config import Settings
from .exceptions import ProjectFileError
from .models import Artifact, Project

DEFAULT_PROJECT_FILE = "Jargo.toml"


def _parse_dependency_table(table: Any, section: str) -> list[Artifact]:
    if table is None:
        return []
    if not isinstance(table, Mapping):
        raise ProjectFileError(f"[{section}] must be a table")
    artifacts: list[Artifact] = []
    for key, version in table.items():
        parts = key.split(":")
        if len(parts) != 2 or not isinstance(version, str):
            raise ProjectFileError(
                f'dependency {key!r} in [{section}] must look like "group:name" = "version"'
            )
        try:
            artifacts.append(Artifact.of(parts[0], parts[1], version))
        except ValidationError as e:
            raise ProjectFileError(f"dependency {key!r} in [{section}] is invalid: {e}") from e
    return artifacts


def _parse_repositories(table: Any, default_repository: str) -> list[str]:
    repositories = [default_repository]
    if table is None:
        return repositories
    if not isinstance(table, Mapping):
        raise ProjectFileError("[repositories] must be a table")
    for name, details in table.items():
        url = details.get("url") if isinstance(details, Mapping) else None
        if not isinstance(url, str) or not url.strip():
            raise ProjectFileError(f"repository {name!r} needs a url")
        url = url.strip().rstrip("/")
        if url not in repositories:
            repositories.append(url)
    return repositories


def load_project(project_file: Optional[Path] = None, settings: Settings | None = None) -> Project:
    """Read the project file (``./Jargo.toml`` by default).

    The default repository from ``settings`` always comes first in the
    repository list.

    Raises:
        ProjectFileError when the file is unreadable or malformed.
    """
    s = settings or Settings()
    path = Path(project_file or DEFAULT_PROJECT_FILE)
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as e:
        raise ProjectFileError(f"cannot read project file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ProjectFileError(f"{path} is not valid TOML: {e}") from e

    package = data.get("package")
    if not isinstance(package, Mapping):
        raise ProjectFileError(f"{path} has no [package] table")
    missing = [k for k in ("group", "name", "version") if not isinstance(package.get(k), str)]
    if missing:
        raise ProjectFileError(f"[package] in {path} lacks {', '.join(missing)}")

    return Project(
        group=package["group"],
        name=package["name"],
        version=package["version"],
        main_dependencies=_parse_dependency_table(data.get("dependencies"), "dependencies"),
        test_dependencies=_parse_dependency_table(data.get("test-dependencies"), "test-dependencies"),
        repositories=_parse_repositories(data.get("repositories"), s.default_repository),
        project_root=path.resolve().parent,
    )


__all__ = ["DEFAULT_PROJECT_FILE", "load_project"]
