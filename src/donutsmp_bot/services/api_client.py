"""DonutSMP REST API client.

This module provides the HTTP client for the upstream DonutSMP API. Every
call is a single attempt with a per-call timeout; the HTTP status and body
are mapped to a typed outcome instead of raising, so callers decide how to
present failures.

Example:
    from donutsmp_bot.services.api_client import DonutApiClient, Success

    client = DonutApiClient.from_settings(get_settings())
    outcome = await client.call("GET", "/v1/stats/Notch")
    if isinstance(outcome, Success):
        print(outcome.body)
"""

import json
from dataclasses import dataclass
from typing import Any, Final

import httpx

from donutsmp_bot.config.settings import Settings
from donutsmp_bot.logging_config import get_logger

logger = get_logger("api_client")

# Single-player lookups answer 500 when the player is not online
LOOKUP_PATH_PREFIX: Final[str] = "/v1/lookup/"


@dataclass(frozen=True)
class Success:
    """2xx response with a decoded JSON body."""

    body: Any


@dataclass(frozen=True)
class PlayerOffline:
    """Lookup of a player that is not currently online."""

    path: str


@dataclass(frozen=True)
class UpstreamError:
    """Non-2xx response from the API."""

    status_code: int
    path: str


@dataclass(frozen=True)
class TransportFailure:
    """Network failure or timeout before a response was received."""

    cause: str


@dataclass(frozen=True)
class MalformedResponse:
    """2xx response whose body is not valid JSON."""

    detail: str


Outcome = Success | PlayerOffline | UpstreamError | TransportFailure | MalformedResponse


class DonutApiClient:
    """Bearer-authenticated client for the DonutSMP API.

    A single ``httpx.AsyncClient`` is shared by interactive handlers and the
    background online poster. No retries are made.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            base_url: API base URL without trailing slash.
            api_key: Static bearer token.
            timeout: Default per-call timeout in seconds.
            transport: Optional transport override (used by tests).
        """
        self.base_url = base_url
        self.timeout = timeout
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DonutApiClient":
        """Create a client configured from application settings.

        Args:
            settings: Application settings.

        Returns:
            DonutApiClient using the configured base URL, key and timeout.
        """
        return cls(
            base_url=settings.donutsmp_api_base_url,
            api_key=settings.donutsmp_api_key.get_secret_value(),
            timeout=settings.api_timeout_seconds,
        )

    async def call(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Outcome:
        """Issue one API request and classify the result.

        Args:
            method: HTTP method ("GET" or "POST").
            path: Request path starting with "/v1/".
            body: Optional JSON body (POST only).
            timeout: Per-call timeout override in seconds.

        Returns:
            The typed outcome of the call.
        """
        effective_timeout = timeout if timeout is not None else self.timeout
        try:
            response = await self._http.request(
                method,
                path,
                json=body,
                timeout=effective_timeout,
            )
        except httpx.TimeoutException:
            logger.warning(
                "DonutSMP API timeout | %s %s | %.1fs", method, path, effective_timeout
            )
            return TransportFailure(
                cause=f"request timed out after {effective_timeout:g}s"
            )
        except httpx.HTTPError as e:
            logger.warning("DonutSMP API transport error | %s %s | %s", method, path, e)
            return TransportFailure(cause=str(e) or type(e).__name__)

        status_code = response.status_code
        logger.info("DonutSMP API | %s %s | status=%d", method, path, status_code)

        if status_code == 500 and path.startswith(LOOKUP_PATH_PREFIX):
            return PlayerOffline(path=path)
        if not response.is_success:
            return UpstreamError(status_code=status_code, path=path)

        try:
            return Success(body=response.json())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Malformed JSON from %s: %s", path, e)
            return MalformedResponse(detail=str(e))

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

