# ABOUTME: Unit tests for Google Books response parsing.
# ABOUTME: Verifies volume fields map onto BookMetadata, including sparse volumes.

from bookclub.metadata.googlebooks_parser import (
    best_cover_url,
    extract_isbn,
    extract_year,
    parse_search_response,
    parse_volume,
)
from tests.fixtures.googlebooks_responses import (
    SEARCH_1984,
    SEARCH_EMPTY,
    VOLUME_1984,
    VOLUME_HARRY_POTTER,
    VOLUME_MINIMAL,
)


class TestExtractYear:
    """Tests for extract_year."""

    def test_full_date(self) -> None:
        assert extract_year("1983-10-17") == 1983

    def test_year_only(self) -> None:
        assert extract_year("2004") == 2004

    def test_missing_or_unparseable(self) -> None:
        """None, empty, and yearless strings give None."""
        assert extract_year(None) is None
        assert extract_year("") is None
        assert extract_year("unknown") is None


class TestExtractIsbn:
    """Tests for extract_isbn."""

    def test_prefers_isbn13(self) -> None:
        """ISBN_13 wins even when ISBN_10 comes first."""
        identifiers = VOLUME_1984["volumeInfo"]["industryIdentifiers"]
        assert extract_isbn(identifiers) == "9780547249643"

    def test_falls_back_to_isbn10(self) -> None:
        assert extract_isbn([{"type": "ISBN_10", "identifier": "0547249640"}]) == "0547249640"

    def test_ignores_other_identifiers(self) -> None:
        """OTHER identifiers are not ISBNs."""
        assert extract_isbn([{"type": "OTHER", "identifier": "UOM:39015"}]) is None
        assert extract_isbn(None) is None


class TestBestCoverUrl:
    """Tests for best_cover_url."""

    def test_picks_largest_and_upgrades_to_https(self) -> None:
        """The largest size is chosen and served over https."""
        url = best_cover_url(VOLUME_HARRY_POTTER["volumeInfo"]["imageLinks"])
        assert url == "https://books.google.com/books/content?id=wrOQLV6xB-wC&zoom=3"

    def test_thumbnail_over_small_thumbnail(self) -> None:
        url = best_cover_url(VOLUME_1984["volumeInfo"]["imageLinks"])
        assert url is not None
        assert url.endswith("zoom=1")

    def test_no_links(self) -> None:
        assert best_cover_url(None) is None
        assert best_cover_url({}) is None


class TestParseVolume:
    """Tests for parse_volume."""

    def test_full_volume(self) -> None:
        """All populated fields are mapped."""
        metadata = parse_volume(VOLUME_1984)
        assert metadata.title == "1984"
        assert metadata.author == "George Orwell"
        assert metadata.external_id == "kotPYEqx7kMC"
        assert metadata.isbn == "9780547249643"
        assert metadata.publication_year == 1983
        assert metadata.page_count == 328
        assert metadata.genres == ["Fiction"]
        assert metadata.description is not None

    def test_multiple_authors_joined(self) -> None:
        """Several authors become one comma-separated string."""
        volume = {"id": "x", "volumeInfo": {"title": "Good Omens", "authors": ["A", "B"]}}
        assert parse_volume(volume).author == "A, B"

    def test_sparse_volume(self) -> None:
        """A volume with no info still parses with a placeholder title."""
        metadata = parse_volume(VOLUME_MINIMAL)
        assert metadata.title == "Unknown Title"
        assert metadata.author is None
        assert metadata.isbn is None
        assert metadata.genres == []
        assert metadata.external_id == "m1n1mal"


class TestParseSearchResponse:
    """Tests for parse_search_response."""

    def test_keeps_provider_order(self) -> None:
        results = parse_search_response(SEARCH_1984)
        assert [r.external_id for r in results] == ["kotPYEqx7kMC", "c0mp4n10n"]

    def test_no_items(self) -> None:
        """A response without 'items' is an empty result."""
        assert parse_search_response(SEARCH_EMPTY) == []
