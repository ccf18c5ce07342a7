"""
Base HTTP Client

Shared base class for the thin HTTP clients that talk to the OMS and
Dispatch systems.
"""

import os
from typing import Dict, Any, Optional
import httpx

from resolution.errors import UpstreamError


class BaseClient:
    """Base HTTP client with common error handling."""

    system_name = "upstream"

    def __init__(
        self,
        base_url: Optional[str] = None,
        env_var: str = "INTERNAL_API_BASE_URL",
        default_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize base client.

        Args:
            base_url: API base URL (overrides env var)
            env_var: Environment variable name for base URL
            default_url: Default base URL if not provided and env var is not set
            timeout: Per-request timeout in seconds; a timeout is reported as UpstreamError
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)

        Raises:
            ValueError: If base_url is not provided and env_var is not set
        """
        if base_url:
            self.base_url = base_url
        else:
            env_value = os.getenv(env_var)
            if env_value:
                self.base_url = env_value
            elif default_url is not None:
                self.base_url = default_url
            else:
                raise ValueError(
                    f"Base URL is required. Either provide 'base_url' parameter "
                    f"or set environment variable '{env_var}'"
                )

        self.base_url = self.base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def _send(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            return self._client.request(method=method, url=url, json=json, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"{self.system_name} request timed out after {self.timeout}s: {method} {path}"
            ) from e
        except httpx.RequestError as e:
            raise UpstreamError(
                f"{self.system_name} request failed: {str(e)}"
            ) from e

    @staticmethod
    def _parse(response: httpx.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Invalid JSON from {response.request.url}: {response.text[:200]}"
            ) from e

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            error_text = e.response.text[:500] if e.response.text else ""
            raise UpstreamError(
                f"{self.system_name} returned error {status_code}: {error_text}"
            ) from e

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Make HTTP request and return parsed JSON ({} for an empty body).

        Raises:
            UpstreamError: On network failures, timeouts or HTTP errors
        """
        response = self._send(method, path, json=json, params=params)
        self._raise_for_status(response)
        return self._parse(response)

    def _request_allow_404(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Make HTTP request and return parsed JSON, or None on 404.

        Raises:
            UpstreamError: On network failures, timeouts or HTTP errors (except 404)
        """
        response = self._send(method, path, json=json, params=params)
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return self._parse(response)

    def close(self) -> None:
        self._client.close()

    def __del__(self):
        """Close httpx client on cleanup."""
        if hasattr(self, "_client"):
            try:
                self._client.close()
            except Exception:
                pass
