"""
HTTP client for the application under test.

Wraps ``httpx.AsyncClient`` with a base URL, default headers, unwrapping of
the ``{"success", "data", "error"}`` response envelope, and retry of
transient failures.
"""

from __future__ import annotations

from typing import Any

import httpx

from qaharness.concurrency.retry import RetryPolicy, is_transient_error
from qaharness.config.environment import Environment
from qaharness.config.logging_config import get_logger
from qaharness.errors import ApiError

log = get_logger(__name__)


def _default_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_retries=3,
        initial_delay=1.0,
        max_delay=10.0,
        jitter=False,
        retryable_predicate=is_transient_error,
    )


class ApiClient:
    """Async API client used by tests and by ``CleanupTracker``.

    Args:
        base_url: Prefix for every request path.
        default_headers: Headers sent with every request.
        retry_policy: Policy for transient failures. Defaults to three
            retries with backoff starting at one second.
        client: Existing ``httpx.AsyncClient`` to use. When omitted the
            client creates and owns one.
    """

    def __init__(
        self,
        base_url: str,
        default_headers: dict[str, str] | None = None,
        retry_policy: RetryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_headers = {"Content-Type": "application/json", **(default_headers or {})}
        self.retry_policy = retry_policy or _default_retry_policy()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_environment(cls, **kwargs: Any) -> ApiClient:
        return cls(Environment.get_api_base_url(), **kwargs)

    async def get(self, path: str, headers: dict[str, str] | None = None, retry: bool = True) -> Any:
        return await self.request("GET", path, headers=headers, retry=retry)

    async def post(
        self,
        path: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
        retry: bool = True,
    ) -> Any:
        return await self.request("POST", path, data=data, headers=headers, retry=retry)

    async def put(
        self,
        path: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
        retry: bool = True,
    ) -> Any:
        return await self.request("PUT", path, data=data, headers=headers, retry=retry)

    async def patch(
        self,
        path: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
        retry: bool = True,
    ) -> Any:
        return await self.request("PATCH", path, data=data, headers=headers, retry=retry)

    async def delete(self, path: str, headers: dict[str, str] | None = None, retry: bool = True) -> Any:
        return await self.request("DELETE", path, headers=headers, retry=retry)

    async def request(
        self,
        method: str,
        path: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
        retry: bool = True,
    ) -> Any:
        """Send one request and return the unwrapped body.

        With ``retry=False`` the request is sent once, for callers such as
        ``CleanupTracker`` that run their own attempt loop.
        """
        url = f"{self.base_url}{path}"
        merged_headers = {**self.default_headers, **(headers or {})}

        async def send() -> Any:
            response = await self._client.request(
                method,
                url,
                json=data,
                headers=merged_headers,
            )
            return await self._handle_response(response)

        log.debug(f"{method} {url}")
        if not retry:
            return await send()
        return await self.retry_policy.execute(send)

    async def _handle_response(self, response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        is_json = "application/json" in content_type

        if not response.is_success:
            message = f"HTTP {response.status_code}"
            if is_json:
                body = response.json()
                if isinstance(body, dict):
                    error = body.get("error")
                    if isinstance(error, dict) and error.get("message"):
                        message = error["message"]
            raise ApiError(message, status_code=response.status_code)

        if is_json:
            body = response.json()
            if isinstance(body, dict) and "success" in body:
                error = body.get("error")
                if not body["success"] and isinstance(error, dict):
                    raise ApiError(error.get("message", "Request failed"), status_code=response.status_code)
                return body.get("data")
            return body

        return response.text

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
