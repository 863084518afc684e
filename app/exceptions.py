"""
Error taxonomy for report generation

Fatal errors (UpstreamError on a top-level fetch, SourceFormatError on a
required sheet, ConfigurationError) end the request with a single
``{"ok": false, "error": ...}`` response. EnrichmentError is caught per item
and never reaches the caller.
"""
from typing import Optional


class ReportError(Exception):
    """Base class for all report errors"""


class UpstreamError(ReportError):
    """Non-success response from Shopify or the sheet host"""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class EnrichmentError(ReportError):
    """A per-item inventory sub-fetch failed"""

    def __init__(self, item_id: str, reason: str):
        super().__init__(f"Inventory enrichment failed for {item_id}: {reason}")
        self.item_id = item_id
        self.reason = reason


class SourceFormatError(ReportError):
    """The sell-through export could not be parsed"""


class ConfigurationError(ReportError):
    """A required endpoint or credential is not configured"""
