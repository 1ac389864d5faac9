"""Resolver configuration using pydantic-settings.

A ``Settings`` value is built once per run and handed to every component that
needs it (cache, transport, resolver). Nothing reads configuration from a
module-level global, so tests can inject a temporary cache root.

All fields are overridable via environment variables prefixed with
``MVN_RESOLVER_``, e.g. ``MVN_RESOLVER_CACHE_ROOT=/tmp/repo``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAVEN_CENTRAL_URL = "https://repo.maven.apache.org/maven2"


def _default_cache_root() -> Path:
    return Path.home() / ".jargo" / "repo"


class Settings(BaseSettings):
    """Top-level resolver settings."""

    # Local cache
    CACHE_ROOT: Path = Field(default_factory=_default_cache_root)

    # Repositories
    DEFAULT_REPOSITORY_URL: str = MAVEN_CENTRAL_URL
    # Plain http:// repositories are refused unless explicitly allowed
    ALLOW_INSECURE_REPOSITORIES: bool = False

    # HTTP behavior
    HTTP_TIMEOUT_SECONDS: int = Field(default=10, ge=1)
    # 0 keeps resolution all-or-nothing: a transient failure aborts the run
    HTTP_MAX_RETRIES: int = Field(default=0, ge=0)
    MAX_DOWNLOAD_BYTES: int = Field(default=256 * 1024 * 1024, ge=1)

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(env_prefix="MVN_RESOLVER_", case_sensitive=False)

    @property
    def default_repository(self) -> str:
        return self.DEFAULT_REPOSITORY_URL.rstrip("/")


__all__ = ["Settings", "MAVEN_CENTRAL_URL"]
