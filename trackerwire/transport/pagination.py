"""RFC 5988 ``Link`` header pagination for REST backends.

GitHub, Jira and friends advertise the next page as

    <https://api.example.com/items?page=2>; rel="next",
    <https://api.example.com/items?page=5>; rel="last"

LinkPaginator follows the ``next`` relation until a page omits it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from trackerwire.transport.client import ApiResponse

logger = logging.getLogger(__name__)

_LINK_URL = re.compile(r"<([^>]+)>")
_LINK_REL = re.compile(r'rel="?([^";]+)"?')
# Entries are separated by commas that precede the next "<url>"; URLs may contain commas
_LINK_SEPARATOR = re.compile(r",\s*(?=<)")


class PageSource(Protocol):
    """Anything that can send one request and return an ApiResponse."""

    def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse: ...


def parse_link_header(header: str | None) -> dict[str, str]:
    """Parse a Link header into ``{rel: url}``.

    Entries without a ``<url>`` or a ``rel`` parameter are skipped, so a
    malformed header yields an empty mapping rather than an error.
    """
    if not header:
        return {}

    links: dict[str, str] = {}
    for part in _LINK_SEPARATOR.split(header):
        url_part, sep, params = part.partition(";")
        if not sep:
            continue
        url_match = _LINK_URL.search(url_part)
        rel_match = _LINK_REL.search(params)
        if url_match and rel_match:
            links[rel_match.group(1).strip()] = url_match.group(1)
    return links


class LinkPaginator:
    """Walks Link-header pagination on top of an HttpClient or a connection."""

    def __init__(self, client: PageSource) -> None:
        self._client = client

    def each_page(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Iterator[Any]:
        """Yield the decoded body of every page.

        The first request uses ``path``, ``body`` and ``query``. Later
        requests use the absolute ``next`` URL verbatim: the query is
        already embedded in it, and for GET the body is dropped as well.
        """
        method = method.upper()
        next_url: str | None = path
        page_number = 0
        while next_url:
            response = self._client.send(method, next_url, body=body, query=query, headers=headers)
            page_number += 1
            yield response.data

            next_url = parse_link_header(response.headers.get("Link")).get("next")
            if next_url:
                logger.debug(f"Following Link rel=next after page {page_number}: {next_url}")
            if method == "GET":
                body = None
            query = None


__all__ = [
    "LinkPaginator",
    "PageSource",
    "parse_link_header",
]
