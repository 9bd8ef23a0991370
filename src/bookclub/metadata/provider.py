# ABOUTME: BibliographicProvider protocol defining the contract for external book sources.
# ABOUTME: Any external catalog API (Google Books, Open Library, ...) implements this.

from typing import Protocol, runtime_checkable

from bookclub.metadata.types import BookMetadata


@runtime_checkable
class BibliographicProvider(Protocol):
    """Protocol for external bibliographic lookup services.

    Misses and non-rate-limit failures come back as empty results.
    ``RateLimitExceeded`` is the one error implementations let through.
    """

    @property
    def name(self) -> str: ...

    async def search_by_query(self, query: str) -> list[BookMetadata]: ...

    async def search_by_title_author(
        self, title: str, author: str | None = None
    ) -> list[BookMetadata]: ...

    async def search_by_isbn(self, isbn: str) -> BookMetadata | None: ...

    async def get_by_id(self, external_id: str) -> BookMetadata | None: ...
