"""
Sell-Through Sheet Connector

Downloads the published CSV export of the sell-through spreadsheet.
The export is a single document; there is no pagination.
"""
from typing import Optional
import httpx

from app.connectors.base import BaseConnector
from app.utils.logger import log


class SellThroughSheetConnector(BaseConnector):
    """Connector for the sell-through CSV export"""

    def __init__(
        self,
        csv_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            csv_url: Public CSV export URL of the sheet
            timeout: Request timeout in seconds
            transport: Optional httpx transport
        """
        super().__init__(source_name="sell_through_sheet", source_type="feed", timeout=timeout, transport=transport)
        self.csv_url = csv_url

    async def authenticate(self) -> bool:
        """The export is public; reachability is the only check"""
        response = await self._request("GET", self.csv_url)
        self._authenticated = response.is_success
        return self._authenticated

    async def fetch_csv(self) -> str:
        """
        Fetch the full CSV body

        Raises:
            UpstreamError: the sheet host answered with a non-success status
        """
        response = await self._request("GET", self.csv_url)
        self._raise_for_status(response, "sell-through sheet")

        text = response.text
        log.info(f"Fetched sell-through sheet ({len(text)} bytes)")
        return text
