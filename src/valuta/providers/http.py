"""
HTTP client adapter shared by all providers.

Wraps httpx.Client with the provider's identifying header, a request timeout
and a bounded retry for transport failures. HTTP error statuses are raised as
VendorError and never retried; exhausted transport retries become
TransportError.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from valuta.config import get_settings
from valuta.providers.base import TransportError, VendorError

logger = logging.getLogger(__name__)

RETRY_ATTEMPTS = 2
RETRY_BASE_INTERVAL = 0.05
RETRY_BACKOFF_FACTOR = 2
RETRY_RANDOMNESS = 0.5


class HttpClient:
    """
    Synchronous HTTP client for one provider.
    
    Safe to share between threads: httpx.Client pools connections and this
    class keeps no per-request state.
    """
    
    def __init__(
        self,
        provider: str,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None
    ):
        settings = get_settings()
        self.provider = provider
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._client = httpx.Client(
            timeout=self.timeout,
            headers={"User-Agent": user_agent or settings.http_user_agent},
            transport=transport,
        )
    
    @retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=(
            wait_exponential(multiplier=RETRY_BASE_INTERVAL, exp_base=RETRY_BACKOFF_FACTOR)
            + wait_random(0, RETRY_BASE_INTERVAL * RETRY_RANDOMNESS)
        ),
        retry=retry_if_exception_type(httpx.TransportError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _send(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None
    ) -> httpx.Response:
        return self._client.request(method, url, params=params)
    
    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None
    ) -> httpx.Response:
        """
        Issue a request and return the response for any 2xx status.
        
        Raises:
            VendorError: HTTP 4xx/5xx (error_type HTTP_<status>)
            TransportError: timeout or connection failure after retries
        """
        try:
            response = self._send(method, url, params)
            response.raise_for_status()
            return response
        
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise VendorError(
                message=f"HTTP error: {status}",
                provider=self.provider,
                error_type=f"HTTP_{status}",
                details={"url": url, "status": status}
            ) from e
        
        except httpx.TimeoutException as e:
            raise TransportError(
                message="Request timeout",
                provider=self.provider,
                error_type="TIMEOUT",
                details={"url": url, "timeout_seconds": self.timeout}
            ) from e
        
        except httpx.TransportError as e:
            raise TransportError(
                message=f"Request failed: {e}",
                provider=self.provider,
                error_type="REQUEST_ERROR",
                details={"url": url}
            ) from e
    
    def get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return self.request("GET", url, params=params)
    
    def head(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return self.request("HEAD", url, params=params)
    
    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET and decode a JSON body."""
        response = self.get(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise VendorError(
                message="Invalid response: body is not JSON",
                provider=self.provider,
                error_type="PARSE_ERROR",
                details={"url": url, "body": response.text[:200]}
            ) from e
    
    def close(self) -> None:
        self._client.close()
