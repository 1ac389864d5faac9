from pathlib import Path

import pytest

from mvn_dep_resolver.models import Artifact
from mvn_dep_resolver.server import resolve_artifact_core, resolve_project_core


def test_resolve_artifact_core(central, settings, pom_builder):
    central.publish("com.acme", "lib", "1.0", pom_builder("com.acme", "lib", "1.0", dependencies=[("com.acme", "dep", "3")]))
    central.publish("com.acme", "dep", "3", pom_builder("com.acme", "dep", "3"))

    resp = resolve_artifact_core(group_id="com.acme", artifact_id="lib", version="1.0", settings=settings)

    assert resp.roots == [Artifact.of("com.acme", "lib", "1.0")]
    assert resp.repositories == [central.base_url]
    assert resp.cache_root == settings.CACHE_ROOT
    assert [r.artifact.name for r in resp.artifacts] == ["dep", "lib"]
    dumped = resp.model_dump(mode="json")
    assert dumped["artifacts"][0]["artifact"]["group"] == "com.acme"


def test_resolve_artifact_core_surfaces_errors_as_value_error(central, settings):
    with pytest.raises(ValueError, match="com.acme:missing:1.0"):
        resolve_artifact_core(group_id="com.acme", artifact_id="missing", version="1.0", settings=settings)


def test_resolve_artifact_core_rejects_bad_coordinates(settings):
    with pytest.raises(ValueError):
        resolve_artifact_core(group_id="com..acme", artifact_id="lib", version="1", settings=settings)


def test_resolve_project_core(tmp_path: Path, central, settings, pom_builder):
    central.publish("com.acme", "lib", "1.0", pom_builder("com.acme", "lib", "1.0"))
    project_file = tmp_path / "Jargo.toml"
    project_file.write_text(
        '[package]\ngroup = "g"\nname = "n"\nversion = "1"\n[dependencies]\n"com.acme:lib" = "1.0"\n',
        encoding="utf-8",
    )

    resp = resolve_project_core(project_file=str(project_file), settings=settings)

    assert [r.artifact.coordinates for r in resp.artifacts] == ["com.acme:lib:1.0"]


def test_resolve_project_core_bad_file(tmp_path: Path, settings):
    with pytest.raises(ValueError):
        resolve_project_core(project_file=str(tmp_path / "missing.toml"), settings=settings)
