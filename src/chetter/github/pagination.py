"""Link header pagination for GitHub list endpoints."""

import re
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Protocol

# GitHub's cap on per_page
MAX_PER_PAGE = 100

_LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')


def parse_link_header(value: str | None) -> dict[str, str]:
    """Map each ``rel`` of a Link header to its URL.

    ``<https://...?page=2>; rel="next", <https://...?page=5>; rel="last"``
    becomes ``{"next": "https://...?page=2", "last": "https://...?page=5"}``.
    """
    if not value:
        return {}
    return {rel: url for url, rel in _LINK_PATTERN.findall(value)}


@dataclass
class Page:
    """One page of a list endpoint."""

    data: Any
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def links(self) -> dict[str, str]:
        return parse_link_header(self.headers.get("Link"))

    @property
    def next_url(self) -> str | None:
        return self.links.get("next")

    @property
    def items(self) -> list[dict[str, Any]]:
        if self.data is None:
            return []
        # matching-refs answers with a bare object instead of a list on
        # some GitHub Enterprise versions when exactly one ref matches
        if isinstance(self.data, dict):
            return [self.data]
        return list(self.data)


class PageFetcher(Protocol):
    async def fetch_page(self, url: str, params: dict[str, Any] | None) -> Page: ...


class AsyncPaginator:
    """Yields the items of every page, following ``rel="next"`` links."""

    def __init__(
        self,
        fetcher: PageFetcher,
        url: str,
        params: dict[str, Any] | None = None,
        per_page: int = MAX_PER_PAGE,
        max_pages: int | None = None,
    ):
        """Initialize the paginator.

        Args:
            fetcher: Performs the request for one page
            url: Absolute URL of the first page
            params: Query parameters of the first request
            per_page: Items per page, capped at ``MAX_PER_PAGE``
            max_pages: Stop after this many pages
        """
        self.fetcher = fetcher
        self.url = url
        self.params = {**(params or {}), "per_page": min(per_page, MAX_PER_PAGE)}
        self.max_pages = max_pages

    async def pages(self) -> AsyncIterator[Page]:
        url: str | None = self.url
        params: dict[str, Any] | None = self.params
        fetched = 0
        while url and (self.max_pages is None or fetched < self.max_pages):
            page = await self.fetcher.fetch_page(url, params)
            fetched += 1
            yield page
            # Next links already carry the query string
            url, params = page.next_url, None

    async def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        async for page in self.pages():
            for item in page.items:
                yield item

    async def collect_all(self) -> list[dict[str, Any]]:
        return [item async for item in self]
