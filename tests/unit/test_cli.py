from pathlib import Path

from typer.testing import CliRunner

from mvn_dep_resolver.cli import app

runner = CliRunner()

JARGO = """
[package]
group = "com.example"
name = "demo"
version = "0.1.0"

[dependencies]
"com.acme:lib" = "1.0"

[test-dependencies]
"com.acme:testlib" = "2.0"
"""


def _project(tmp_path: Path) -> Path:
    path = tmp_path / "Jargo.toml"
    path.write_text(JARGO, encoding="utf-8")
    return path


def test_resolve_populates_cache(tmp_path: Path, central, pom_builder):
    central.publish("com.acme", "lib", "1.0", pom_builder("com.acme", "lib", "1.0"))
    central.publish("com.acme", "testlib", "2.0", pom_builder("com.acme", "testlib", "2.0"))
    cache_root = tmp_path / "cache"

    result = runner.invoke(app, ["resolve", str(_project(tmp_path)), "--cache-root", str(cache_root)])

    assert result.exit_code == 0, result.output
    assert "Resolved" in result.output
    assert (cache_root / "com/acme/lib/1.0/lib-1.0.jar").is_file()
    assert (cache_root / "com/acme/testlib/2.0/testlib-2.0.jar").is_file()


def test_resolve_without_test_dependencies(tmp_path: Path, central, pom_builder):
    central.publish("com.acme", "lib", "1.0", pom_builder("com.acme", "lib", "1.0"))
    cache_root = tmp_path / "cache"

    result = runner.invoke(
        app, ["resolve", str(_project(tmp_path)), "--no-test", "--cache-root", str(cache_root)]
    )

    assert result.exit_code == 0, result.output
    assert not (cache_root / "com/acme/testlib").exists()


def test_resolve_failure_exits_non_zero_with_coordinates(tmp_path: Path, central):
    result = runner.invoke(
        app, ["resolve", str(_project(tmp_path)), "--cache-root", str(tmp_path / "cache")]
    )

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "com.acme:lib:1.0" in result.output


def test_resolve_missing_project_file(tmp_path: Path):
    result = runner.invoke(app, ["resolve", str(tmp_path / "missing.toml")])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_cache_path(tmp_path: Path):
    result = runner.invoke(app, ["cache-path", "org.hamcrest:hamcrest-core:1.1", "--cache-root", str(tmp_path)])
    assert result.exit_code == 0
    assert result.output.strip() == str(tmp_path / "org" / "hamcrest" / "hamcrest-core" / "1.1")


def test_cache_path_rejects_bad_coordinates():
    result = runner.invoke(app, ["cache-path", "not-coordinates"])
    assert result.exit_code == 1
    assert "Error:" in result.output
