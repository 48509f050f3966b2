"""Paginated listing through the resilient executor.

Both pagination styles of the admin API are adapted to one contract: a
page fetcher takes the current cursor (None for the first page) and
returns a ``Page`` of items plus the next cursor (None when done).

- REST: the next cursor is the ``rel="next"`` URL from the ``Link`` header.
- GraphQL: the next cursor is ``pageInfo.endCursor`` while ``hasNextPage``.

``fetch_all`` runs every page request through ``execute``, so a transient
failure retries that page only. A page that still fails aborts the whole
listing; partial listings are never returned.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from storesync.api.client import StoreClient
from storesync.api.graphql import GraphQLClient
from storesync.core.config.retry import RetryPolicy
from storesync.core.constants import DEFAULT_PAGE_SIZE
from storesync.core.errors import StoreSyncError
from storesync.core.logging import get_logger
from storesync.execution.retry import execute

T = TypeVar("T")

_logger = get_logger("pagination")

_NEXT_LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="next"')


@dataclass
class Page(Generic[T]):
    """One page of a listing.

    Attributes:
        items: Items on this page, in server order.
        next_cursor: Continuation token, or None on the last page.
    """

    items: list[T] = field(default_factory=list)
    next_cursor: str | None = None


PageFetcher = Callable[[str | None], Awaitable[Page[T]]]


async def fetch_all(
    page_fetcher: PageFetcher[T],
    max_items: int | None = None,
    policy: RetryPolicy | None = None,
    *,
    description: str = "listing",
) -> list[T]:
    """Collect every item of a paginated listing.

    Pages are requested strictly in cursor order.

    Args:
        page_fetcher: Fetches one page for a cursor (None = first page).
        max_items: Stop once this many items are collected and truncate to it.
        policy: Retry policy for each page request.
        description: Label used in log entries.

    Returns:
        Items in original order.

    Raises:
        ValueError: If max_items is less than 1.
        StoreSyncError: If the server repeats a cursor.
        Exception: The last error of a page that could not be fetched.
    """
    if max_items is not None and max_items < 1:
        raise ValueError(f"max_items must be >= 1, got {max_items}")

    cursor: str | None = None
    collected: list[T] = []
    page_number = 0

    while True:
        page_number += 1
        page = await execute(
            functools.partial(page_fetcher, cursor),
            policy,
            description=f"{description} page {page_number}",
        )
        collected.extend(page.items)
        _logger.debug(
            "pagination.page_fetched",
            listing=description,
            page=page_number,
            page_items=len(page.items),
            total_items=len(collected),
            has_next=page.next_cursor is not None,
        )

        if max_items is not None and len(collected) >= max_items:
            _logger.debug("pagination.capped", listing=description, max_items=max_items)
            return collected[:max_items]

        if not page.next_cursor:
            break
        if page.next_cursor == cursor:
            raise StoreSyncError(
                f"Pagination for {description} returned the same cursor twice: {cursor}"
            )
        cursor = page.next_cursor

    return collected


def parse_next_link(link_header: str | None) -> str | None:
    """Extract the ``rel="next"`` URL from a Link header.

    >>> parse_next_link('<https://s/a.json?page_info=x>; rel="next"')
    'https://s/a.json?page_info=x'
    """
    if not link_header:
        return None
    match = _NEXT_LINK_PATTERN.search(link_header)
    return match.group(1) if match else None


def rest_page_fetcher(
    client: StoreClient,
    path: str,
    key: str,
    *,
    resource: str | None = None,
    params: dict[str, Any] | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PageFetcher[dict[str, Any]]:
    """Adapt a link-header paginated REST listing.

    Args:
        client: Transport.
        path: Listing endpoint, e.g. "pages.json".
        key: Key of the item array in the response body, e.g. "pages".
        resource: Resource type for error hints.
        params: Extra query parameters for the first page.
        page_size: Requested ``limit`` for the first page.
    """
    first_params = {"limit": page_size, **(params or {})}

    async def fetch(cursor: str | None) -> Page[dict[str, Any]]:
        if cursor is None:
            response = await client.request("GET", path, params=first_params, resource=resource)
        else:
            # The next link already carries limit and page_info
            response = await client.request("GET", cursor, resource=resource)
        body = response.json() or {}
        return Page(
            items=list(body.get(key) or []),
            next_cursor=parse_next_link(response.headers.get("link")),
        )

    return fetch


def _dig(data: dict[str, Any], path: str) -> dict[str, Any]:
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            raise StoreSyncError(f"GraphQL response is missing '{path}'")
        node = node[part]
    return node or {}


def graphql_page_fetcher(
    graphql: GraphQLClient,
    document: str,
    connection_path: str,
    *,
    variables: dict[str, Any] | None = None,
    resource: str | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PageFetcher[dict[str, Any]]:
    """Adapt a GraphQL connection with ``pageInfo { hasNextPage endCursor }``.

    The document must accept ``$first`` and ``$after`` variables.

    Args:
        graphql: GraphQL client.
        document: Query document.
        connection_path: Dotted path to the connection in ``data``, e.g. "menus".
        variables: Extra variables passed on every page.
        resource: Resource type for error messages.
        page_size: Value of ``$first``.
    """
    base_variables = dict(variables or {})

    async def fetch(cursor: str | None) -> Page[dict[str, Any]]:
        data = await graphql.query(
            document,
            {**base_variables, "first": page_size, "after": cursor},
            resource=resource,
        )
        connection = _dig(data, connection_path)
        nodes = connection.get("nodes")
        if nodes is None:
            nodes = [edge["node"] for edge in connection.get("edges") or []]
        page_info = connection.get("pageInfo") or {}
        next_cursor = page_info.get("endCursor") if page_info.get("hasNextPage") else None
        return Page(items=list(nodes), next_cursor=next_cursor)

    return fetch


__all__ = [
    "Page",
    "PageFetcher",
    "fetch_all",
    "graphql_page_fetcher",
    "parse_next_link",
    "rest_page_fetcher",
]
