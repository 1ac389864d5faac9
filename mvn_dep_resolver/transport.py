"""HTTP transport for remote Maven repositories.

- One blocking ``httpx.Client`` per resolution run, with connection pooling
- ``fetch(url)`` returns the body, or raises ``ResourceNotFound`` (404/410),
  or ``TransportError`` for every other failure
- Optional bounded retries with backoff (disabled by default)
- HTTPS-only unless insecure repositories are explicitly allowed
- Bodies are streamed so a size cap can be enforced
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from .config import Settings
from .exceptions import ResourceNotFound, TransportError

_logger = logging.getLogger(__name__)

_NOT_FOUND_STATUSES = frozenset({404, 410})
_RETRIABLE_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteError,
    httpx.RemoteProtocolError,
    httpx.NetworkError,
)


class _RetriableStatus(Exception):
    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP {status}")
        self.status = status


def check_repository_url(url: str, allow_insecure: bool = False) -> str:
    """Normalize a repository base URL, rejecting unsupported schemes."""
    u = (url or "").strip().rstrip("/")
    lowered = u.lower()
    if lowered.startswith("https://"):
        return u
    if lowered.startswith("http://"):
        if allow_insecure:
            return u
        raise ValueError(f"repository URL must be HTTPS: {u}")
    raise ValueError(f"unsupported repository URL: {url!r}")


class RepositoryHttpClient:
    """Blocking client used to download POMs, jars, sidecars and metadata.

    Parameters are sourced from ``settings`` but can be overridden for tests.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        max_retries: Optional[int] = None,
        client: httpx.Client | None = None,
        sleep_fn: Callable[[float], Any] | None = None,
    ) -> None:
        s = settings or Settings()
        self._allow_insecure = s.ALLOW_INSECURE_REPOSITORIES
        self._max_bytes = s.MAX_DOWNLOAD_BYTES
        self._max_retries = int(max_retries if max_retries is not None else s.HTTP_MAX_RETRIES)
        self._client = client or httpx.Client(
            timeout=s.HTTP_TIMEOUT_SECONDS, follow_redirects=True
        )
        # Injected sleep function so tests never really wait
        self._sleep = sleep_fn or time.sleep
        self.request_count = 0

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RepositoryHttpClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _backoff(self, attempt: int) -> None:
        # 0.05, 0.1, 0.2, ... seconds
        self._sleep(0.05 * (2 ** max(0, attempt - 1)))

    def _get_once(self, url: str) -> bytes:
        self.request_count += 1
        with self._client.stream("GET", url) as resp:
            status = resp.status_code
            if status in _NOT_FOUND_STATUSES:
                raise ResourceNotFound(url)
            if status == 429 or 500 <= status <= 599:
                raise _RetriableStatus(status)
            if status >= 400:
                raise TransportError(f"GET {url} failed with HTTP {status}")

            total = 0
            chunks: list[bytes] = []
            for chunk in resp.iter_bytes():
                total += len(chunk)
                if total > self._max_bytes:
                    raise TransportError(
                        f"GET {url} exceeds the maximum download size of {self._max_bytes} bytes"
                    )
                chunks.append(chunk)
            return b"".join(chunks)

    def fetch(self, url: str) -> bytes:
        """GET ``url`` and return its body.

        Raises ResourceNotFound for 404/410 and TransportError otherwise. Only
        connection errors, 429 and 5xx are retried, and only when retries are
        enabled.
        """
        scheme_ok = url.lower().startswith("https://") or (
            self._allow_insecure and url.lower().startswith("http://")
        )
        if not scheme_ok:
            raise TransportError(f"refusing to fetch non-HTTPS URL {url}")

        _logger.debug("HTTP GET", extra={"url": url})
        last_error = "no attempt made"
        for attempt in range(self._max_retries + 1):
            try:
                return self._get_once(url)
            except _RetriableStatus as e:
                last_error = str(e)
            except _RETRIABLE_ERRORS as e:
                last_error = f"{type(e).__name__}: {e}"
            except httpx.HTTPError as e:
                raise TransportError(f"GET {url} failed: {e}") from e

            if attempt < self._max_retries:
                _logger.debug("retrying", extra={"url": url, "attempt": attempt + 1})
                self._backoff(attempt + 1)

        raise TransportError(f"GET {url} failed: {last_error}")


__all__ = ["RepositoryHttpClient", "check_repository_url"]
