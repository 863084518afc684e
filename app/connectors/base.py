"""
Base Connector Class

All data connectors inherit from this base class.
Provides common functionality for authentication state, HTTP access and error handling.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import httpx

from app.exceptions import UpstreamError
from app.utils.logger import log


class BaseConnector(ABC):
    """
    Base class for all data source connectors

    Implements common patterns:
    - Authentication state
    - One httpx client per request, with an injectable transport
    - Non-success responses surfaced as UpstreamError (no automatic retry)
    """

    def __init__(
        self,
        source_name: str,
        source_type: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize connector

        Args:
            source_name: Name of data source (e.g., 'shopify', 'sell_through_sheet')
            source_type: Type of source (e.g., 'ecommerce', 'feed')
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.source_name = source_name
        self.source_type = source_type
        self.timeout = timeout
        self._transport = transport
        self._authenticated = False

    @abstractmethod
    async def authenticate(self) -> bool:
        """
        Authenticate with the data source

        Returns:
            True if authentication successful, False otherwise
        """
        pass

    def is_authenticated(self) -> bool:
        """Check if connector is authenticated"""
        return self._authenticated

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """
        Issue one HTTP request

        Transport failures are reported as UpstreamError without a status.
        """
        try:
            async with self._client() as client:
                return await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=headers
                )
        except httpx.HTTPError as e:
            log.error(f"{self.source_name} request to {url} failed: {str(e)}")
            raise UpstreamError(f"{self.source_name} request failed: {str(e)}") from e

    def _raise_for_status(self, response: httpx.Response, what: str) -> None:
        """
        Raise UpstreamError for a non-success response

        Args:
            response: Response to check
            what: Short description of the request for the error message
        """
        if response.is_success:
            return

        body = response.text
        log.error(f"Error fetching {what} from {self.source_name}: {response.status_code} - {body[:500]}")
        raise UpstreamError(
            f"Failed to fetch {what} ({response.status_code})",
            status=response.status_code,
            body=body
        )

    def _handle_rate_limit(self, retry_after: float):
        """
        Log a 429 response; the request fails with UpstreamError and is not retried

        Args:
            retry_after: Seconds the upstream asked us to wait
        """
        log.warning(f"{self.source_name} request rejected with 429 (Retry-After {retry_after}s); not retried")
