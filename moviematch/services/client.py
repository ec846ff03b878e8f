"""
HttpClient - Shared async HTTP client for remote dependencies.

Maps transport failures onto the service error hierarchy so callers
(and the circuit breaker) see one family of exceptions:
- timeouts -> RequestTimeoutError
- non-2xx responses -> RemoteError (with status_code)
- connection errors and non-JSON bodies -> RemoteError
"""

from typing import Any

import httpx
from loguru import logger

from moviematch.services.errors import RemoteError, RequestTimeoutError


class HttpClient:
    """
    Thin wrapper over httpx.AsyncClient.

    Usage:
        async with HttpClient(timeout=10.0) as client:
            data = await client.request_json(
                service_id="tmdb",
                url="https://api.themoviedb.org/3/movie/popular",
                params={"api_key": "..."},
            )
    """

    def __init__(
        self,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout = timeout
        self._headers = headers or {}
        self._transport = transport

        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers=self._headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._http_client

    async def request_json(
        self,
        service_id: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        method: str = "GET",
        json_data: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Execute the HTTP request and decode a JSON body.

        Raises:
            RequestTimeoutError: If request times out
            RemoteError: For non-2xx, transport and decoding errors
        """
        client = await self._get_http_client()
        req_timeout = timeout or self._timeout

        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                json=json_data,
                timeout=req_timeout,
            )
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()

        except httpx.TimeoutException as e:
            raise RequestTimeoutError(service_id, req_timeout) from e

        except httpx.HTTPStatusError as e:
            raise RemoteError(
                f"HTTP {e.response.status_code}: {e.response.text[:200]}",
                service_id=service_id,
                status_code=e.response.status_code,
            ) from e

        except httpx.RequestError as e:
            raise RemoteError(str(e), service_id=service_id) from e

        except ValueError as e:
            raise RemoteError(
                f"Invalid JSON from {service_id}: {e}", service_id=service_id
            ) from e

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("HttpClient closed")

    async def __aenter__(self) -> "HttpClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
