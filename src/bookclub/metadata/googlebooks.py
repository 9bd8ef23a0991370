# ABOUTME: Google Books implementation of the BibliographicProvider protocol.
# ABOUTME: Builds intitle:/inauthor:/isbn: queries and sends them through the rate-limited fetcher.

import logging
from typing import Any

from bookclub.metadata.googlebooks_parser import parse_search_response, parse_volume
from bookclub.metadata.http import Fetcher, MetadataFetchError, RateLimitExceeded
from bookclub.metadata.isbn import clean_isbn
from bookclub.metadata.types import BookMetadata

logger = logging.getLogger(__name__)

_VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"
_MAX_RESULTS = 10


def build_title_author_query(title: str, author: str | None = None) -> str:
    """Build the fielded query Google Books expects for title/author lookups."""
    query = f"intitle:{title}"
    if author:
        query += f"+inauthor:{author}"
    return query


class GoogleBooksProvider:
    """Bibliographic provider backed by the Google Books volumes API.

    Every request goes through the injected fetcher so pacing and 429
    handling are shared with all other provider traffic.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        api_key: str | None = None,
        max_results: int = _MAX_RESULTS,
    ) -> None:
        self._fetcher = fetcher
        self._api_key = api_key
        self._max_results = max_results

    @property
    def name(self) -> str:
        return "googlebooks"

    async def search_by_query(self, query: str) -> list[BookMetadata]:
        """Run a raw volumes query; returns [] on a miss or a non-rate-limit failure."""
        params = {
            "q": query,
            "maxResults": str(self._max_results),
            "printType": "books",
        }
        data = await self._get_json(_VOLUMES_URL, params)
        if data is None:
            return []
        return parse_search_response(data)

    async def search_by_title_author(
        self, title: str, author: str | None = None
    ) -> list[BookMetadata]:
        return await self.search_by_query(build_title_author_query(title, author))

    async def search_by_isbn(self, isbn: str) -> BookMetadata | None:
        results = await self.search_by_query(f"isbn:{clean_isbn(isbn)}")
        return results[0] if results else None

    async def get_by_id(self, external_id: str) -> BookMetadata | None:
        data = await self._get_json(f"{_VOLUMES_URL}/{external_id}", {})
        if not data or "volumeInfo" not in data:
            return None
        return parse_volume(data)

    async def _get_json(self, url: str, params: dict[str, str]) -> dict[str, Any] | None:
        """Fetch and decode JSON, mapping misses to None.

        RateLimitExceeded is re-raised so the cascade can stop early.
        """
        if self._api_key:
            params = {**params, "key": self._api_key}
        try:
            response = await self._fetcher.fetch(url, params=params)
        except RateLimitExceeded:
            raise
        except MetadataFetchError as exc:
            logger.warning("Google Books request failed for %s: %s", params.get("q", url), exc)
            return None

        if response.status_code != 200:
            logger.warning("Google Books returned HTTP %d for %s", response.status_code, url)
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Google Books returned malformed JSON for %s: %s", url, exc)
            return None
