"""
Paged collection fetching

Shopify exposes two pagination styles:
- GraphQL connections: ``pageInfo { hasNextPage }`` plus a cursor on every edge
- REST collections: a ``Link`` response header carrying ``page_info`` for the next page

Both are reduced to a ``Page`` (records + continuation token) so a single
loop can flatten any collection.
"""
import re
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

_PAGE_INFO_RE = re.compile(r"page_info=([^&>]+)")


@dataclass
class Page:
    """One page of a remote collection"""
    records: List[Dict[str, Any]] = field(default_factory=list)
    next_token: Optional[str] = None


# (resource, params, continuation token) -> Page
PageFetcher = Callable[[str, Dict[str, Any], Optional[str]], Awaitable[Page]]


async def fetch_all(
    fetch_page: PageFetcher,
    resource: str,
    filter_params: Optional[Dict[str, Any]] = None
) -> AsyncIterator[Dict[str, Any]]:
    """
    Yield every record of a paged collection in arrival order.

    Keeps requesting while the previous page returned a continuation token.
    Errors raised by ``fetch_page`` (UpstreamError) abort the iteration.

    Args:
        fetch_page: Coroutine returning one Page for (resource, params, token)
        resource: Logical collection name (e.g. "products", "orders.json")
        filter_params: Date bounds, limits and other query filters
    """
    params = dict(filter_params or {})
    token: Optional[str] = None

    while True:
        page = await fetch_page(resource, params, token)
        for record in page.records:
            yield record

        if not page.next_token:
            break
        token = page.next_token


async def collect_all(
    fetch_page: PageFetcher,
    resource: str,
    filter_params: Optional[Dict[str, Any]] = None
) -> List[Dict[str, Any]]:
    """Materialize ``fetch_all`` into a list"""
    return [record async for record in fetch_all(fetch_page, resource, filter_params)]


def get_next_page_info(link_header: Optional[str]) -> Optional[str]:
    """
    Parse the next-page token from a Link header

    Shopify uses cursor-based pagination with Link headers:
        <https://shop/admin/api/2024-10/orders.json?limit=50&page_info=abc>; rel="next"

    Args:
        link_header: Link header from response

    Returns:
        page_info token for the next page, or None
    """
    if not link_header:
        return None

    for link in link_header.split(","):
        if 'rel="next"' not in link:
            continue
        match = _PAGE_INFO_RE.search(link)
        if match:
            return match.group(1)

    return None


def get_connection_cursor(connection: Dict[str, Any]) -> Optional[str]:
    """
    Continuation cursor for a GraphQL connection, or None on the last page

    Args:
        connection: Connection object with ``edges`` and ``pageInfo``
    """
    edges = connection.get("edges") or []
    page_info = connection.get("pageInfo") or {}

    if not page_info.get("hasNextPage") or not edges:
        return None
    return edges[-1].get("cursor")
