"""POM parsing and the inheritance-aware POM view.

``parse_pom`` turns untrusted XML into a small ``Pom`` model using defusedxml.
``PomView`` wraps a ``Pom`` together with its already-resolved parent view and
answers questions that need the whole parent chain: the effective version and
the effective version of each declared dependency.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional, Union

from defusedxml import DefusedXmlException  # type: ignore[import-untyped]
# Secure XML parsing
from defusedxml import ElementTree as ET  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import MissingManagedVersionError, PomParseError
from .models import Artifact

DEFAULT_PACKAGING = "jar"


# --- XML helpers (namespace-agnostic) ---
def local_name(tag: Any) -> str:
    """Return the local name of an XML tag, stripping any namespace."""
    if not isinstance(tag, str):
        # comments and processing instructions
        return ""
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def find_child(elem: Any, name: str) -> Optional[Any]:
    for child in elem:
        if local_name(child.tag) == name:
            return child
    return None


def child_text(elem: Any, name: str) -> Optional[str]:
    child = find_child(elem, name)
    if child is None:
        return None
    return (child.text or "").strip() or None


def parse_xml(document: Union[str, bytes], what: str) -> Any:
    """Parse ``document`` safely, raising PomParseError naming ``what`` on failure.

    Bytes are decoded by the parser according to the XML declaration
    (UTF-8 when none is given).
    """
    try:
        return ET.fromstring(document)
    except (ET.ParseError, DefusedXmlException) as e:
        raise PomParseError(f"malformed {what}: {e}") from e


# --- model ---
class PomParent(BaseModel):
    model_config = ConfigDict(frozen=True)

    group_id: str
    artifact_id: str
    version: str

    def to_artifact(self) -> Artifact:
        return _to_artifact(self.group_id, self.artifact_id, self.version)


class PomDependency(BaseModel):
    """A ``<dependency>`` entry; version may be left to dependency management."""

    model_config = ConfigDict(frozen=True)

    group_id: str
    artifact_id: str
    version: Optional[str] = None


class Pom(BaseModel):
    """The subset of a Maven POM the resolver needs."""

    # model_version is the POM element, not a pydantic attribute
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_version: str
    parent: Optional[PomParent] = None
    group_id: Optional[str] = None
    artifact_id: str
    version: Optional[str] = None
    name: Optional[str] = None
    packaging: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    dependencies: list[PomDependency] = Field(default_factory=list)
    dependency_management: list[PomDependency] = Field(default_factory=list)


def _parse_parent(root: Any) -> Optional[PomParent]:
    elem = find_child(root, "parent")
    if elem is None:
        return None
    gid = child_text(elem, "groupId")
    aid = child_text(elem, "artifactId")
    ver = child_text(elem, "version")
    if not (gid and aid and ver):
        raise PomParseError("<parent> requires groupId, artifactId and version")
    return PomParent(group_id=gid, artifact_id=aid, version=ver)


def _parse_dependency_list(container: Optional[Any], where: str) -> list[PomDependency]:
    if container is None:
        return []
    deps: list[PomDependency] = []
    for dep in container:
        if local_name(dep.tag) != "dependency":
            continue
        gid = child_text(dep, "groupId")
        aid = child_text(dep, "artifactId")
        if not gid or not aid:
            raise PomParseError(f"<dependency> in {where} lacks groupId or artifactId")
        deps.append(PomDependency(group_id=gid, artifact_id=aid, version=child_text(dep, "version")))
    return deps


def parse_pom(pom_xml: Union[str, bytes]) -> Pom:
    """Parse a POM document.

    Security:
        Uses defusedxml to prevent XXE and entity expansion attacks.

    Raises:
        PomParseError if the XML is malformed, the root is not ``<project>``,
        or ``modelVersion`` / ``artifactId`` are missing.
    """
    root = parse_xml(pom_xml, "POM")
    if local_name(root.tag) != "project":
        raise PomParseError(f"expected <project> root element, found <{local_name(root.tag)}>")

    model_version = child_text(root, "modelVersion")
    if not model_version:
        raise PomParseError("POM is missing <modelVersion>")
    artifact_id = child_text(root, "artifactId")
    if not artifact_id:
        raise PomParseError("POM is missing <artifactId>")

    managed_container = None
    dm = find_child(root, "dependencyManagement")
    if dm is not None:
        managed_container = find_child(dm, "dependencies")

    return Pom(
        model_version=model_version,
        parent=_parse_parent(root),
        group_id=child_text(root, "groupId"),
        artifact_id=artifact_id,
        version=child_text(root, "version"),
        name=child_text(root, "name"),
        packaging=child_text(root, "packaging"),
        description=child_text(root, "description"),
        url=child_text(root, "url"),
        dependencies=_parse_dependency_list(find_child(root, "dependencies"), "dependencies"),
        dependency_management=_parse_dependency_list(managed_container, "dependencyManagement"),
    )


class PomView:
    """Read-only view over a POM and its resolved parent chain."""

    def __init__(self, pom: Pom, parent: Optional["PomView"] = None) -> None:
        if pom.parent is not None and parent is None:
            raise ValueError(
                f"POM {pom.artifact_id} declares parent {pom.parent.artifact_id} "
                "but no parent view was supplied"
            )
        self._pom = pom
        self._parent = parent

    @property
    def pom(self) -> Pom:
        return self._pom

    @property
    def parent(self) -> Optional["PomView"]:
        return self._parent

    def lineage(self) -> Iterator["PomView"]:
        """This view, then its parent, grandparent, ..."""
        view: Optional[PomView] = self
        while view is not None:
            yield view
            view = view._parent

    @property
    def artifact_id(self) -> str:
        return self._pom.artifact_id

    @property
    def packaging(self) -> str:
        return self._pom.packaging or DEFAULT_PACKAGING

    def group_id(self) -> str:
        for view in self.lineage():
            if view._pom.group_id:
                return view._pom.group_id
        raise PomParseError(f"no groupId declared for {self._pom.artifact_id} or its parents")

    def version(self) -> str:
        """Own version, else the nearest ancestor's.

        Raises MissingManagedVersionError once the chain is exhausted.
        """
        for view in self.lineage():
            if view._pom.version:
                return view._pom.version
        raise MissingManagedVersionError(
            f"could not find version for {self._pom.artifact_id} in its POM or any parent"
        )

    def managed_version(self, group_id: str, artifact_id: str) -> Optional[str]:
        """Nearest dependencyManagement version for (group_id, artifact_id)."""
        for view in self.lineage():
            for entry in view._pom.dependency_management:
                if entry.group_id == group_id and entry.artifact_id == artifact_id and entry.version:
                    return entry.version
        return None

    def dependencies(self) -> list[Artifact]:
        """Declared dependencies with their effective versions, in document order."""
        resolved: list[Artifact] = []
        for dep in self._pom.dependencies:
            version = dep.version or self.managed_version(dep.group_id, dep.artifact_id)
            if version is None:
                raise MissingManagedVersionError(
                    f"could not find version for {dep.group_id}:{dep.artifact_id}"
                )
            resolved.append(_to_artifact(dep.group_id, dep.artifact_id, version))
        return resolved


def _to_artifact(group_id: str, artifact_id: str, version: str) -> Artifact:
    try:
        return Artifact.of(group_id, artifact_id, version)
    except ValidationError as e:
        raise PomParseError(
            f"invalid coordinates {group_id}:{artifact_id}:{version}: {e.error_count()} error(s)"
        ) from e


__all__ = [
    "DEFAULT_PACKAGING",
    "Pom",
    "PomParent",
    "PomDependency",
    "PomView",
    "parse_pom",
    "parse_xml",
    "local_name",
    "find_child",
    "child_text",
]
