"""
Async client for the backend routes, used by the editor.

Usage:
    async with ApiClient("http://localhost:8000") as api:
        data = await api.post_json("/api/replicate/edit-region", body, timeout=120)
"""

from __future__ import annotations

import logging

import httpx

from thumbnail_ai.errors import (
    NetworkError,
    UpstreamAuthError,
    UpstreamGenerationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(self, base_url: str, http: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        if self._owns_http:
            await self.http.aclose()

    def url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{self.base_url}{path}"

    async def post_json(self, path: str, body: dict, timeout: float | None = None) -> dict:
        """
        POST a JSON body and return the decoded JSON response.

        Raises:
            ValidationError: On a 400 response.
            UpstreamAuthError: On a 401 response.
            UpstreamGenerationError: On any other non-2xx response.
            NetworkError: On timeout or connectivity failure.
        """
        try:
            r = await self.http.post(self.url(path), json=body, timeout=timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to {path} timed out", timed_out=True) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {path} failed: {e}") from e

        if r.is_success:
            try:
                return r.json()
            except ValueError as e:
                raise UpstreamGenerationError(f"Invalid response from {path}") from e

        message = _error_message(r)
        logger.error("%s returned %s: %s", path, r.status_code, message)
        if r.status_code == 400:
            raise ValidationError(message)
        if r.status_code == 401:
            raise UpstreamAuthError(message)
        raise UpstreamGenerationError(message)

    async def get_bytes(self, url: str, timeout: float | None = 60) -> bytes:
        try:
            r = await self.http.get(self.url(url), timeout=timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timed out downloading {url}", timed_out=True) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to download {url}: {e}") from e
        if r.status_code != 200:
            raise NetworkError(f"Failed to download image: {r.status_code}")
        return r.content


def _error_message(r: httpx.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text[:300] or f"Request failed ({r.status_code})"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Request failed ({r.status_code})"
