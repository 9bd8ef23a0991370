# ABOUTME: Resolves a review to a catalog book: extraction, local dedup, provider search, confirmation.
# ABOUTME: Returns AutoResolved, NeedsConfirmation, or Failed; never drops a review silently.

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from bookclub.core.books import BookService
from bookclub.core.confirmation import ConfirmationFlow
from bookclub.core.dedup import CatalogDeduplicator
from bookclub.core.events import ErrorKind, ReviewFinalized
from bookclub.core.failure_log import FailureLog
from bookclub.core.sessions import ConfirmationSession, SessionConflictError
from bookclub.db.catalog import DuplicateReviewError, PersistenceError
from bookclub.db.mapping import CatalogEntry, PendingReview
from bookclub.extraction.pipeline import ExtractionPipeline
from bookclub.metadata.candidate import BookCandidate, Similarity
from bookclub.metadata.cascade import SearchCascade
from bookclub.metadata.http import RateLimitExceeded
from bookclub.metadata.similarity import normalize_text, similarity
from bookclub.metadata.types import BookMetadata, Confidence, ExtractionResult
from bookclub.metadata.variants import author_variants, title_variants

logger = logging.getLogger(__name__)

DEFAULT_MAX_CANDIDATES = 3


class FailureReason(str, Enum):
    SESSION_OPEN = "session_open"
    DUPLICATE_REVIEW = "duplicate_review"
    PERSISTENCE = "persistence"


@dataclass(frozen=True)
class AutoResolved:
    entry: CatalogEntry
    review_id: int
    review_count: int
    degraded: bool = False


@dataclass(frozen=True)
class NeedsConfirmation:
    session: ConfirmationSession


@dataclass(frozen=True)
class Failed:
    reason: FailureReason
    message: str


Outcome = AutoResolved | NeedsConfirmation | Failed


def _dedup_key(title: str, author: str | None) -> str:
    return f"{normalize_text(title)}|||{normalize_text(author or '')}"


class BookIdentityResolver:
    """Decides which book a review is about.

    A review is auto-resolved only when extraction is highly confident and
    exactly one plausible book turns up: a single local match, or (with no
    local match) a single provider hit that clears the similarity
    thresholds. Everything else goes to the reviewer for confirmation. If
    the provider is rate limited, the book is created from the extracted
    title/author alone and flagged as degraded.
    """

    def __init__(
        self,
        pipeline: ExtractionPipeline,
        deduplicator: CatalogDeduplicator,
        cascade: SearchCascade,
        books: BookService,
        flow: ConfirmationFlow,
        *,
        failure_log: FailureLog | None = None,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
    ) -> None:
        self._pipeline = pipeline
        self._dedup = deduplicator
        self._cascade = cascade
        self._books = books
        self._flow = flow
        self._failure_log = failure_log
        self._max_candidates = max_candidates

    async def resolve(self, review: PendingReview, command_hint: str | None = None) -> Outcome:
        user_id = review.user_id
        if self._flow.store.has_session(user_id):
            return await self._fail(
                user_id,
                FailureReason.SESSION_OPEN,
                ErrorKind.SESSION_OPEN,
                "Please finish or cancel your current book confirmation first.",
            )
        if self._books.has_review(review):
            return await self._fail(
                user_id,
                FailureReason.DUPLICATE_REVIEW,
                ErrorKind.DUPLICATE_REVIEW,
                "This review has already been saved.",
            )

        extraction = await self._pipeline.extract(review.review_text, command_hint)
        title = extraction.title
        if extraction.is_empty or title is None:
            return await self._confirm(review, extraction, [])
        confident = extraction.confidence is Confidence.HIGH

        local = self._dedup.find_candidates(title, extraction.author)
        if confident and len(local) == 1:
            entry = self._books.get(local[0].catalog_id)  # type: ignore[arg-type]
            if entry is not None:
                logger.info("Review by %s matched catalog book %d", user_id, entry.id)
                return await self._auto(review, lambda: entry)

        try:
            results = await self._cascade.search_all(
                title,
                extraction.author,
                title_variants(title),
                author_variants(extraction.author),
            )
        except RateLimitExceeded:
            logger.warning("Provider rate limited; creating %r from extraction only", title)
            return await self._auto(
                review,
                lambda: self._books.create_minimal(title, extraction.author),
                degraded=True,
            )

        if not results and self._failure_log is not None:
            self._failure_log.record(title, extraction.author)

        external = self._external_candidates(results, extraction, local)
        if confident and not local:
            thresholds = self._dedup.thresholds
            plausible = [
                c
                for c in external
                if c.similarity and thresholds.matches(c.similarity.title, c.similarity.author)
            ]
            if len(plausible) == 1 and plausible[0].metadata is not None:
                metadata = plausible[0].metadata
                return await self._auto(review, lambda: self._books.find_or_create(metadata))

        candidates = (local + external)[: self._max_candidates]
        return await self._confirm(review, extraction, candidates)

    def _external_candidates(
        self,
        results: list[BookMetadata],
        extraction: ExtractionResult,
        local: list[BookCandidate],
    ) -> list[BookCandidate]:
        """Provider hits as candidates, minus repeats and books already offered locally."""
        seen = {_dedup_key(c.title, c.author) for c in local}
        local_ids = {c.external_id for c in local if c.external_id}
        candidates = []
        for metadata in results:
            key = _dedup_key(metadata.title, metadata.author)
            if key in seen or (metadata.external_id and metadata.external_id in local_ids):
                continue
            seen.add(key)
            author_score = None
            if extraction.author and metadata.author:
                author_score = similarity(extraction.author, metadata.author)
            score = Similarity(
                title=similarity(extraction.title or "", metadata.title), author=author_score
            )
            candidates.append(BookCandidate.from_metadata(metadata, score))
        return candidates

    async def _auto(
        self,
        review: PendingReview,
        make_entry: Callable[[], CatalogEntry],
        *,
        degraded: bool = False,
    ) -> Outcome:
        """Create or fetch the book, attach the review, and announce it."""
        user_id = review.user_id
        try:
            entry = make_entry()
            saved = self._books.save_review(entry, review)
        except DuplicateReviewError:
            return await self._fail(
                user_id,
                FailureReason.DUPLICATE_REVIEW,
                ErrorKind.DUPLICATE_REVIEW,
                "This review has already been saved.",
            )
        except PersistenceError as exc:
            logger.error("Could not store review by %s: %s", user_id, exc)
            return await self._fail(
                user_id,
                FailureReason.PERSISTENCE,
                ErrorKind.PERSISTENCE,
                "Could not save your review, please try again.",
            )

        await self._flow.presenter.emit(
            ReviewFinalized(user_id, saved.entry, saved.review_id, saved.review_count, degraded)
        )
        return AutoResolved(saved.entry, saved.review_id, saved.review_count, degraded)

    async def _confirm(
        self,
        review: PendingReview,
        extraction: ExtractionResult,
        candidates: list[BookCandidate],
    ) -> Outcome:
        try:
            session = await self._flow.start(review, extraction, candidates)
        except SessionConflictError:
            return await self._fail(
                review.user_id,
                FailureReason.SESSION_OPEN,
                ErrorKind.SESSION_OPEN,
                "Please finish or cancel your current book confirmation first.",
            )
        return NeedsConfirmation(session)

    async def _fail(
        self, user_id: str, reason: FailureReason, kind: ErrorKind, message: str
    ) -> Failed:
        await self._flow.report(user_id, kind, message)
        return Failed(reason, message)
