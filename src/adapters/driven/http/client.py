"""HTTP client adapter for the hosted backend, with retry and metrics."""

import asyncio
import logging
from types import TracebackType
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from src.adapters.driven.http.retry import retry
from src.core.errors import AuthError, FetchError
from src.ports.http import RestQuery
from src.ports.metrics import MetricsPort, QueryAttemptDto

__all__ = ["HttpClient"]

logger = logging.getLogger(__name__)

# Configurable retry settings
PROBE_RETRIES = 3
PROBE_TIMEOUT = 10
REQUEST_RETRIES = 2
REQUEST_TIMEOUT = 10
FIRST_FAILING_HTTP_CODE = 400
AUTH_FAILURE_CODES = (401, 403)
REST_PATH = "/rest/v1"


class HttpClient:
    """HTTP client for the backend's REST and auth endpoints.

    Features:
    - Short retry on transient connection errors.
    - Query metrics collection (latency, failure rate).
    - Maps 401/403 to AuthError and other error statuses to FetchError.
    - Context manager for proper resource cleanup.
    - Health check/probe functionality.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        metrics: MetricsPort | None = None,
        timeout_sec: float = REQUEST_TIMEOUT,
    ) -> None:
        """Initialize HTTP client.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co.
            api_key: Public (anon) API key sent with every request.
            metrics: Optional metrics collector to track queries.
            timeout_sec: Total timeout for one request.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.metrics = metrics
        self.timeout = ClientTimeout(total=timeout_sec)
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "HttpClient":
        """Enter async context manager (start session).

        Returns:
            Self for use in async with statement.
        """
        self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close session)."""
        if self.session:
            await self.session.close()

    def headers(self, access_token: str | None = None) -> dict[str, str]:
        """Return request headers for the given bearer token.

        Without a user token the anon key is used as bearer.
        """
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
            "Accept": "application/json",
        }

    @retry(times=PROBE_RETRIES)
    async def _probe_once(self, url: str, timeout: int = PROBE_TIMEOUT) -> int:
        """Single HTTP GET request for health check (with retry).

        Returns:
            HTTP status code.

        Raises:
            RuntimeError: If session not initialized.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")
        async with self.session.get(
            url, headers={"apikey": self.api_key}, timeout=ClientTimeout(timeout)
        ) as resp:
            return resp.status

    async def probe(self, url: str, timeout: int = PROBE_TIMEOUT) -> bool:
        """Check if an HTTP endpoint is reachable.

        Args:
            url: URL to probe.
            timeout: Timeout in seconds.

        Returns:
            True if reachable (200 <= status < 300), False otherwise.
        """
        logger.info(f"Probing endpoint {url}...")
        try:
            status = await self._probe_once(url, timeout)
            logger.info(f"Probe for {url} returned status {status}")
            return 200 <= status < 300
        except Exception as e:
            logger.warning(f"Probe failed for {url}: {e}")
            return False

    @retry(times=REQUEST_RETRIES)
    async def _raw_get(
        self, path: str, params: dict[str, str] | None, access_token: str | None
    ) -> tuple[int, Any]:
        """Single GET request (with retry via decorator).

        Returns:
            Tuple of (status code, decoded JSON body or None).

        Raises:
            RuntimeError: If session not initialized.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")

        async with self.session.get(
            f"{self.base_url}{path}", params=params, headers=self.headers(access_token)
        ) as resp:
            if resp.status >= FIRST_FAILING_HTTP_CODE:
                body = await resp.text()
                return resp.status, body
            return resp.status, await resp.json(content_type=None)

    async def get_json(
        self,
        path: str,
        params: dict[str, str] | None = None,
        access_token: str | None = None,
    ) -> Any:
        """Send a GET request, record metrics and decode the JSON body.

        Args:
            path: Path below the base URL.
            params: Query string parameters.
            access_token: User bearer token.

        Returns:
            Decoded JSON body.

        Raises:
            AuthError: On 401/403.
            FetchError: On other error statuses, network failures or an
                undecodable body.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        status: int | None = None
        try:
            status, body = await self._raw_get(path, params, access_token)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._record(path, started, loop.time(), None)
            raise FetchError(f"GET {path} failed: {e!r}") from e
        except ValueError as e:
            self._record(path, started, loop.time(), None)
            raise FetchError(f"GET {path} returned a body that is not JSON: {e}") from e

        self._record(path, started, loop.time(), status)

        if status in AUTH_FAILURE_CODES:
            raise AuthError(f"GET {path} rejected with status {status}")
        if status >= FIRST_FAILING_HTTP_CODE:
            raise FetchError(f"GET {path} returned status {status}: {body}")
        return body

    async def query(self, query: RestQuery, access_token: str | None = None) -> list[dict[str, Any]]:
        """Run a REST table query and return its rows.

        Raises:
            AuthError: On 401/403.
            FetchError: On failures or a non-list response.
        """
        rows = await self.get_json(f"{REST_PATH}/{query.table}", query.params(), access_token)
        if not isinstance(rows, list):
            raise FetchError(f"Unexpected response for table {query.table}: {rows!r}")
        return rows

    def _record(self, path: str, started: float, finished: float, status: int | None) -> None:
        if not self.metrics:
            return
        self.metrics.update(
            QueryAttemptDto(
                path=path,
                started_at_sec=started,
                finished_at_sec=finished,
                is_failed=status is None or status >= FIRST_FAILING_HTTP_CODE,
                status_code=status,
            )
        )
        logger.debug(f"Query metrics: {self.metrics}")
