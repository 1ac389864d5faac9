"""Typer CLI entry point: resolve a project's dependencies into the local cache."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings
from .exceptions import ResolverError
from .local_cache import LocalCache
from .logging_config import configure_logging
from .models import Artifact, ResolvedArtifact
from .project import DEFAULT_PROJECT_FILE, load_project
from .resolver import ArtifactResolver

app = typer.Typer(add_completion=False, help="Resolve and cache Maven dependencies.")
console = Console()


def _settings(cache_root: Optional[Path]) -> Settings:
    if cache_root is None:
        return Settings()
    return Settings(CACHE_ROOT=cache_root)


def _print_error(exc: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {exc}", soft_wrap=True, markup=True, highlight=False)


def _summary_table(resolved: list[ResolvedArtifact], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Artifact")
    table.add_column("Repository", style="dim")
    table.add_column("Jar")
    for entry in resolved:
        table.add_row(
            entry.artifact.coordinates,
            entry.repository or "(cache)",
            "yes" if entry.jar_path else "-",
        )
    return table


@app.command()
def resolve(
    project_file: Annotated[
        Path, typer.Argument(help="Project description file.")
    ] = Path(DEFAULT_PROJECT_FILE),
    include_test: Annotated[
        bool, typer.Option("--test/--no-test", help="Also resolve test dependencies.")
    ] = True,
    cache_root: Annotated[
        Optional[Path], typer.Option("--cache-root", help="Override the cache directory.")
    ] = None,
    log_level: Annotated[str, typer.Option("--log-level", help="Log level for progress output.")] = "INFO",
    json_logs: Annotated[bool, typer.Option("--json-logs", help="Emit JSON log lines.")] = False,
) -> None:
    """Download, verify and cache every dependency declared in PROJECT_FILE."""
    configure_logging(log_level, json_logs=json_logs)
    try:
        settings = _settings(cache_root)
        project = load_project(project_file, settings)
        with ArtifactResolver.for_project(project, settings) as resolver:
            resolved = resolver.resolve(project.root_artifacts(include_test=include_test))
    except (ResolverError, ValueError) as exc:
        _print_error(exc)
        raise typer.Exit(code=1) from None

    console.print(_summary_table(resolved, f"{project.group}:{project.name}:{project.version}"))
    console.print(f"[green]Resolved[/green] {len(resolved)} artifact(s) into [bold]{settings.CACHE_ROOT}[/bold].")


@app.command("cache-path")
def cache_path(
    coordinates: Annotated[str, typer.Argument(help="Artifact as groupId:artifactId:version")],
    cache_root: Annotated[
        Optional[Path], typer.Option("--cache-root", help="Override the cache directory.")
    ] = None,
) -> None:
    """Print the cache directory that holds COORDINATES."""
    parts = coordinates.split(":")
    try:
        if len(parts) != 3:
            raise ValueError(f"{coordinates!r} is not groupId:artifactId:version")
        artifact = Artifact.of(*parts)
    except ValueError as exc:
        _print_error(exc)
        raise typer.Exit(code=1) from None
    cache = LocalCache(_settings(cache_root).CACHE_ROOT)
    typer.echo(str(cache.artifact_dir(artifact)))


def main() -> None:
    """Console-script entry point."""
    app()
