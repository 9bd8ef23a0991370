# ABOUTME: Ordered fallback search against the bibliographic provider.
# ABOUTME: Tries progressively looser title/author queries and stops at the first hit.

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from bookclub.metadata.provider import BibliographicProvider
from bookclub.metadata.similarity import normalize_text
from bookclub.metadata.types import BookMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchStrategy:
    """One named provider query; ``run`` performs exactly one provider call."""

    name: str
    run: Callable[[], Awaitable[list[BookMetadata]]]


def _distinct(values: Sequence[str], *exclude: str | None) -> list[str]:
    """Drop blanks, repeats, and values equal to an excluded one after normalization."""
    seen = {normalize_text(value) for value in exclude if value}
    result: list[str] = []
    for value in values:
        key = normalize_text(value)
        if key and key not in seen:
            seen.add(key)
            result.append(value)
    return result


class SearchCascade:
    """Runs title/author strategies in a fixed order against one provider.

    Order: exact title+author, title alone, each title variant with the
    author, each title variant alone, the title with each author variant,
    and finally one loose combined query. ``RateLimitExceeded`` from the
    provider is not caught: it aborts the remaining strategies.
    """

    def __init__(self, provider: BibliographicProvider) -> None:
        self._provider = provider

    def plan(
        self,
        title: str,
        author: str | None = None,
        title_variants: Sequence[str] = (),
        author_variants: Sequence[str] = (),
    ) -> list[SearchStrategy]:
        """Build the ordered strategy list for a lookup."""
        provider = self._provider
        t_variants = _distinct(title_variants, title)
        a_variants = _distinct(author_variants, author)
        strategies: list[SearchStrategy] = []

        def by_title_author(name: str, t: str, a: str | None) -> SearchStrategy:
            return SearchStrategy(name, lambda: provider.search_by_title_author(t, a))

        if author:
            strategies.append(by_title_author("title+author", title, author))
        strategies.append(by_title_author("title", title, None))
        if author:
            strategies.extend(
                by_title_author(f"title variant {v!r}+author", v, author) for v in t_variants
            )
        strategies.extend(by_title_author(f"title variant {v!r}", v, None) for v in t_variants)
        strategies.extend(
            by_title_author(f"title+author variant {v!r}", title, v) for v in a_variants
        )

        loose = f"{title} {author or ''}".strip()
        strategies.append(SearchStrategy("loose", lambda: provider.search_by_query(loose)))
        return strategies

    async def search_all(
        self,
        title: str,
        author: str | None = None,
        title_variants: Sequence[str] = (),
        author_variants: Sequence[str] = (),
    ) -> list[BookMetadata]:
        """Return every result of the first strategy that finds anything, else []."""
        for strategy in self.plan(title, author, title_variants, author_variants):
            results = await strategy.run()
            if results:
                logger.info("Found %r with %s search", title, strategy.name)
                return results
        logger.info("No provider results for %r / %r after all fallbacks", title, author)
        return []

    async def search(
        self,
        title: str,
        author: str | None = None,
        title_variants: Sequence[str] = (),
        author_variants: Sequence[str] = (),
    ) -> BookMetadata | None:
        """Return the best result of the first strategy that finds anything."""
        results = await self.search_all(title, author, title_variants, author_variants)
        return results[0] if results else None
