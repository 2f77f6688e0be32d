"""Shared HTTP plumbing for backend adapters."""

import logging
from typing import Any

import httpx

from smartline.core.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    NetworkError,
    NotFoundError,
    ServiceUnavailableError,
    SmartlineError,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"Request failed with status {response.status_code}"
    message: Any = data.get("error") if isinstance(data, dict) else None
    if isinstance(message, dict):
        message = message.get("message") or str(message)
    return str(message) if message else f"Request failed with status {response.status_code}"


def raise_for_response(response: httpx.Response) -> None:
    """Translate a non-2xx response into the exception taxonomy."""
    if response.is_success:
        return

    status = response.status_code
    message = _error_message(response)
    details = {"status_code": status, "url": str(response.request.url)}

    if status in (401, 403):
        raise AuthorizationError(message, details)
    if status == 404:
        raise NotFoundError(message, details)
    if status >= 500:
        raise ServiceUnavailableError(message, details)
    raise BusinessRuleError(message, details)


def map_transport_error(e: httpx.HTTPError, timeout: float) -> SmartlineError:
    if isinstance(e, httpx.TimeoutException):
        return NetworkError(f"Request timed out after {timeout}s")
    return NetworkError(f"Network error: {e}")


class BackendClient:
    """Thin JSON client for the dispatch/pricing backend.

    A bearer token is attached when a token provider is configured and the
    call is authenticated.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token_provider=None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token_provider = token_provider
        self._client = client

    def _headers(self, auth: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if auth and self._token_provider is not None:
            token = self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = True,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.request(
                    method, url, params=params, json=json, headers=self._headers(auth)
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(
                        method, url, params=params, json=json, headers=self._headers(auth)
                    )
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise map_transport_error(e, self.timeout) from e

        raise_for_response(response)
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    async def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("POST", path, **kwargs)
