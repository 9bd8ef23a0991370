# ABOUTME: Parsing functions for Google Books API JSON responses.
# ABOUTME: Converts volume resources into BookMetadata instances.

import re
from typing import Any

from bookclub.metadata.types import BookMetadata

_YEAR_RE = re.compile(r"(\d{4})")

# Largest first; Google omits whichever sizes it doesn't have.
_COVER_SIZES = ("large", "medium", "small", "thumbnail", "smallThumbnail")


def extract_year(date_str: str | None) -> int | None:
    """Pull a four-digit year out of dates like '1949', '1949-06' or '1949-06-08'."""
    if not date_str:
        return None
    match = _YEAR_RE.search(date_str)
    return int(match.group(1)) if match else None


def extract_isbn(identifiers: list[dict[str, str]] | None) -> str | None:
    """Prefer ISBN_13 over ISBN_10; ignore other identifier types."""
    if not identifiers:
        return None
    by_type = {entry.get("type"): entry.get("identifier") for entry in identifiers}
    return by_type.get("ISBN_13") or by_type.get("ISBN_10")


def best_cover_url(image_links: dict[str, str] | None) -> str | None:
    """Pick the largest available cover image, upgraded to https."""
    if not image_links:
        return None
    for size in _COVER_SIZES:
        url = image_links.get(size)
        if url:
            return url.replace("http://", "https://", 1)
    return None


def parse_volume(item: dict[str, Any]) -> BookMetadata:
    """Parse one volume resource (search item or /volumes/{id} body)."""
    info = item.get("volumeInfo", {})
    authors = info.get("authors") or []
    return BookMetadata(
        title=info.get("title") or "Unknown Title",
        author=", ".join(authors) if authors else None,
        external_id=item.get("id"),
        isbn=extract_isbn(info.get("industryIdentifiers")),
        cover_url=best_cover_url(info.get("imageLinks")),
        genres=list(info.get("categories") or []),
        publication_year=extract_year(info.get("publishedDate")),
        description=info.get("description"),
        page_count=info.get("pageCount"),
    )


def parse_search_response(data: dict[str, Any]) -> list[BookMetadata]:
    """Parse a /volumes search response, keeping the provider's ordering."""
    return [parse_volume(item) for item in data.get("items") or []]
