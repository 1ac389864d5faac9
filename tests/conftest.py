from __future__ import annotations

import hashlib
from collections.abc import Callable, Iterator, Sequence
from typing import Optional, Union

import httpx
import pytest
import respx

from mvn_dep_resolver.config import MAVEN_CENTRAL_URL, Settings
from mvn_dep_resolver.local_cache import LocalCache
from mvn_dep_resolver.resolver import ArtifactResolver

Body = Union[bytes, str]


class FakeRepository:
    """In-memory Maven repository served through respx.

    Unknown paths answer 404; every request URL is recorded.
    """

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")
        self.files: dict[str, bytes] = {}
        self.requested: list[str] = []

    def put(self, relative_path: str, body: Body) -> None:
        self.files[relative_path] = body.encode("utf-8") if isinstance(body, str) else body

    def publish(
        self,
        group: str,
        name: str,
        version: str,
        pom_xml: str,
        jar: Optional[bytes] = b"PK\x03\x04 fake jar",
        *,
        checksums: bool = True,
        file_version: Optional[str] = None,
    ) -> None:
        """Publish a POM (and jar) with optional ``.sha1`` sidecars."""
        directory = f"{group.replace('.', '/')}/{name}/{version}"
        stem = f"{directory}/{name}-{file_version or version}"
        pom = pom_xml.encode("utf-8")
        self.put(f"{stem}.pom", pom)
        if checksums:
            self.put(f"{stem}.pom.sha1", hashlib.sha1(pom).hexdigest())
        if jar is not None:
            self.put(f"{stem}.jar", jar)
            if checksums:
                self.put(f"{stem}.jar.sha1", hashlib.sha1(jar).hexdigest())

    def url(self, relative_path: str) -> str:
        return f"{self.base_url}/{relative_path}"

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        relative = url[len(self.base_url) + 1 :]
        body = self.files.get(relative)
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, content=body)

    def mount(self, router: respx.Router) -> "FakeRepository":
        router.get(url__startswith=self.base_url + "/").mock(side_effect=self.handler)
        return self


def make_pom(
    group: Optional[str],
    name: str,
    version: Optional[str],
    *,
    dependencies: Sequence[tuple[str, str, Optional[str]]] = (),
    managed: Sequence[tuple[str, str, str]] = (),
    parent: Optional[tuple[str, str, str]] = None,
    packaging: Optional[str] = None,
) -> str:
    """Render a minimal namespaced POM document."""
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<project xmlns="http://maven.apache.org/POM/4.0.0">',
        "  <modelVersion>4.0.0</modelVersion>",
    ]
    if parent is not None:
        pg, pn, pv = parent
        parts.append(
            f"  <parent><groupId>{pg}</groupId><artifactId>{pn}</artifactId>"
            f"<version>{pv}</version></parent>"
        )
    if group is not None:
        parts.append(f"  <groupId>{group}</groupId>")
    parts.append(f"  <artifactId>{name}</artifactId>")
    if version is not None:
        parts.append(f"  <version>{version}</version>")
    if packaging is not None:
        parts.append(f"  <packaging>{packaging}</packaging>")
    if managed:
        parts.append("  <dependencyManagement><dependencies>")
        for g, n, v in managed:
            parts.append(
                f"    <dependency><groupId>{g}</groupId><artifactId>{n}</artifactId>"
                f"<version>{v}</version></dependency>"
            )
        parts.append("  </dependencies></dependencyManagement>")
    if dependencies:
        parts.append("  <dependencies>")
        for g, n, v in dependencies:
            version_xml = f"<version>{v}</version>" if v else ""
            parts.append(
                f"    <dependency><groupId>{g}</groupId><artifactId>{n}</artifactId>"
                f"{version_xml}</dependency>"
            )
        parts.append("  </dependencies>")
    parts.append("</project>")
    return "\n".join(parts) + "\n"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(CACHE_ROOT=tmp_path / "repo")


@pytest.fixture
def cache(settings: Settings) -> LocalCache:
    return LocalCache(settings.CACHE_ROOT)


@pytest.fixture
def respx_router() -> Iterator[respx.Router]:
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def central(respx_router: respx.Router) -> FakeRepository:
    """Fake Maven Central; the default repository in Settings."""
    return FakeRepository(MAVEN_CENTRAL_URL).mount(respx_router)


@pytest.fixture
def fake_repository(respx_router: respx.Router) -> Callable[[str], FakeRepository]:
    """Factory for additional fake repositories at other base URLs."""

    def _f(base_url: str) -> FakeRepository:
        return FakeRepository(base_url).mount(respx_router)

    return _f


@pytest.fixture
def pom_builder() -> Callable[..., str]:
    return make_pom


@pytest.fixture
def resolver_factory(settings: Settings) -> Iterator[Callable[..., ArtifactResolver]]:
    created: list[ArtifactResolver] = []

    def _f(repositories: Optional[list[str]] = None) -> ArtifactResolver:
        r = ArtifactResolver(repositories, settings)
        created.append(r)
        return r

    yield _f
    for r in created:
        r.close()
