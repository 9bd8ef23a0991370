# ABOUTME: Per-user confirmation state machine: pick a candidate, enter an ISBN, or type the book.
# ABOUTME: Every input runs under the user's lock and ends by emitting events for the transport.

import logging

from bookclub.core.books import BookService, SavedReview
from bookclub.core.dedup import entry_to_candidate
from bookclub.core.events import (
    CALLBACK_CANCEL,
    CALLBACK_ISBN,
    CALLBACK_MANUAL,
    CALLBACK_SELECT_PREFIX,
    AuthorPrompted,
    ErrorKind,
    ErrorReported,
    IsbnPrompted,
    OptionsPresented,
    Presenter,
    ReviewFinalized,
    SessionCancelled,
    TitlePrompted,
)
from bookclub.core.sessions import (
    TEXT_INPUT_STATES,
    ConfirmationSession,
    SessionState,
    SessionStore,
)
from bookclub.db.catalog import DuplicateReviewError, PersistenceError
from bookclub.db.mapping import CatalogEntry, PendingReview
from bookclub.metadata.candidate import BookCandidate
from bookclub.metadata.http import RateLimitExceeded
from bookclub.metadata.isbn import InvalidIsbnError, parse_isbn
from bookclub.metadata.provider import BibliographicProvider
from bookclub.metadata.types import ExtractionResult

logger = logging.getLogger(__name__)

_EXPIRED_MESSAGE = "This confirmation has expired. Please post your review again."


class ConfirmationFlow:
    """Drives sessions through their states in response to user actions.

    Transitions:
        showing_options --select--> finalized
        showing_options --isbn--> awaiting_isbn --valid, found--> showing_options
        showing_options --manual--> awaiting_title --text--> awaiting_author --text--> finalized
        any --cancel--> cleared

    Validation and lookup failures leave the session where it is so the
    reviewer can retry. So does a failed write when finalizing.
    """

    def __init__(
        self,
        store: SessionStore,
        books: BookService,
        provider: BibliographicProvider,
        presenter: Presenter,
    ) -> None:
        self._store = store
        self._books = books
        self._provider = provider
        self._presenter = presenter

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def presenter(self) -> Presenter:
        return self._presenter

    async def report(self, user_id: str, kind: ErrorKind, message: str) -> None:
        await self._presenter.emit(ErrorReported(user_id=user_id, kind=kind, message=message))

    async def start(
        self,
        review: PendingReview,
        extraction: ExtractionResult | None,
        candidates: list[BookCandidate],
    ) -> ConfirmationSession:
        """Open a session: show candidates, or go straight to manual entry if none.

        Raises:
            SessionConflictError: If the user already has a live session.
        """
        state = SessionState.SHOWING_OPTIONS if candidates else SessionState.AWAITING_TITLE
        session = await self._store.create(
            ConfirmationSession(
                user_id=review.user_id,
                state=state,
                pending_review=review,
                extraction=extraction,
                candidates=list(candidates),
            )
        )
        if candidates:
            await self._presenter.emit(
                OptionsPresented(review.user_id, list(candidates), extraction)
            )
        else:
            await self._presenter.emit(TitlePrompted(review.user_id))
        return session

    async def _session(
        self, user_id: str, *states: SessionState
    ) -> ConfirmationSession | None:
        """Live session in one of ``states``, reporting why when there isn't one."""
        session = self._store.get(user_id)
        if session is None:
            await self.report(user_id, ErrorKind.SESSION_EXPIRED, _EXPIRED_MESSAGE)
            return None
        if states and session.state not in states:
            await self.report(
                user_id,
                ErrorKind.INVALID_ACTION,
                "That option isn't available right now.",
            )
            return None
        return session

    async def select(self, user_id: str, index: int) -> SavedReview | None:
        """Confirm the candidate at ``index`` (0-based) and finalize the review."""
        async with self._store.lock_for(user_id):
            session = await self._session(user_id, SessionState.SHOWING_OPTIONS)
            if session is None:
                return None
            if not 0 <= index < len(session.candidates):
                await self.report(user_id, ErrorKind.INVALID_ACTION, "Unknown option.")
                return None

            candidate = session.candidates[index]
            try:
                entry = self._entry_for(candidate)
            except PersistenceError as exc:
                logger.error("Could not store selected book for %s: %s", user_id, exc)
                await self.report(
                    user_id, ErrorKind.PERSISTENCE, "Could not save the book, please try again."
                )
                return None
            if entry is None:
                await self.report(
                    user_id, ErrorKind.INVALID_ACTION, "That book is no longer in the catalog."
                )
                return None
            return await self._finalize(session, entry)

    def _entry_for(self, candidate: BookCandidate) -> CatalogEntry | None:
        if candidate.catalog_id is not None:
            return self._books.get(candidate.catalog_id)
        if candidate.metadata is None:
            return None
        return self._books.find_or_create(candidate.metadata)

    async def request_isbn(self, user_id: str) -> None:
        async with self._store.lock_for(user_id):
            session = await self._session(user_id, SessionState.SHOWING_OPTIONS)
            if session is None:
                return
            session.state = SessionState.AWAITING_ISBN
            await self._presenter.emit(IsbnPrompted(user_id))

    async def request_manual(self, user_id: str) -> None:
        async with self._store.lock_for(user_id):
            session = await self._session(user_id, SessionState.SHOWING_OPTIONS)
            if session is None:
                return
            session.state = SessionState.AWAITING_TITLE
            session.entered_title = None
            await self._presenter.emit(TitlePrompted(user_id))

    async def cancel(self, user_id: str) -> None:
        async with self._store.lock_for(user_id):
            session = await self._session(user_id)
            if session is None:
                return
            await self._store.clear(user_id)
            logger.info("User %s cancelled confirmation", user_id)
            await self._presenter.emit(SessionCancelled(user_id))

    async def handle_text(self, user_id: str, text: str) -> bool:
        """Feed free text to a session waiting for it.

        Returns False when the user has no session expecting text, so the
        caller can treat the message as ordinary chat.
        """
        session = self._store.get(user_id)
        if session is None or session.state not in TEXT_INPUT_STATES:
            return False

        async with self._store.lock_for(user_id):
            session = self._store.get(user_id)
            if session is None or session.state not in TEXT_INPUT_STATES:
                return False
            text = text.strip()
            if session.state is SessionState.AWAITING_ISBN:
                await self._on_isbn(session, text)
            elif session.state is SessionState.AWAITING_TITLE:
                session.entered_title = text
                session.state = SessionState.AWAITING_AUTHOR
                await self._presenter.emit(AuthorPrompted(user_id, text))
            else:
                await self._on_author(session, text)
        return True

    async def handle_callback(self, user_id: str, data: str) -> bool:
        """Route a button payload; returns False if it isn't a confirmation button."""
        if data.startswith(CALLBACK_SELECT_PREFIX):
            try:
                index = int(data.removeprefix(CALLBACK_SELECT_PREFIX))
            except ValueError:
                await self.report(user_id, ErrorKind.INVALID_ACTION, "Unknown option.")
                return True
            await self.select(user_id, index)
        elif data == CALLBACK_ISBN:
            await self.request_isbn(user_id)
        elif data == CALLBACK_MANUAL:
            await self.request_manual(user_id)
        elif data == CALLBACK_CANCEL:
            await self.cancel(user_id)
        else:
            return False
        return True

    async def _on_isbn(self, session: ConfirmationSession, text: str) -> None:
        user_id = session.user_id
        try:
            isbn = parse_isbn(text)
        except InvalidIsbnError:
            await self.report(
                user_id,
                ErrorKind.INVALID_ISBN,
                "That doesn't look like a valid ISBN. Send a 10- or 13-digit ISBN.",
            )
            return

        local = self._books.get_by_isbn(isbn)
        if local is not None:
            logger.info("ISBN %s is already catalog book %d", isbn, local.id)
            await self._show_isbn_match(session, entry_to_candidate(local))
            return

        try:
            metadata = await self._provider.search_by_isbn(isbn)
        except RateLimitExceeded:
            await self.report(
                user_id,
                ErrorKind.RATE_LIMITED,
                "The book search service is busy. Please try again later.",
            )
            return

        if metadata is None:
            await self.report(
                user_id,
                ErrorKind.ISBN_NOT_FOUND,
                f"No book found for ISBN {isbn}. Try another ISBN.",
            )
            return

        await self._show_isbn_match(session, BookCandidate.from_metadata(metadata))

    async def _show_isbn_match(
        self, session: ConfirmationSession, candidate: BookCandidate
    ) -> None:
        session.candidates = [candidate]
        session.state = SessionState.SHOWING_OPTIONS
        await self._presenter.emit(
            OptionsPresented(session.user_id, [candidate], session.extraction)
        )

    async def _on_author(self, session: ConfirmationSession, text: str) -> None:
        title = session.entered_title or ""
        try:
            entry = self._manual_entry(session, title, text)
        except PersistenceError as exc:
            logger.error("Could not create manual book for %s: %s", session.user_id, exc)
            await self.report(
                session.user_id,
                ErrorKind.PERSISTENCE,
                "Could not save the book, please send the author again.",
            )
            return
        await self._finalize(session, entry)

    def _manual_entry(
        self, session: ConfirmationSession, title: str, author: str
    ) -> CatalogEntry:
        """The book typed in this session, created once even if the review write is retried."""
        if session.manual_entry_id is not None:
            entry = self._books.get(session.manual_entry_id)
            if entry is not None and (entry.title, entry.author) == (title, author):
                return entry
        entry = self._books.create_manual(title, author)
        session.manual_entry_id = entry.id
        return entry

    async def _finalize(
        self, session: ConfirmationSession, entry: CatalogEntry
    ) -> SavedReview | None:
        """Store the review and close the session; keep it open if the write fails."""
        user_id = session.user_id
        try:
            saved = self._books.save_review(entry, session.pending_review)
        except DuplicateReviewError:
            await self._store.clear(user_id)
            await self.report(
                user_id, ErrorKind.DUPLICATE_REVIEW, "This review has already been saved."
            )
            return None
        except PersistenceError as exc:
            logger.error("Could not store review for %s: %s", user_id, exc)
            await self.report(
                user_id, ErrorKind.PERSISTENCE, "Could not save your review, please try again."
            )
            return None

        await self._store.clear(user_id)
        logger.info("Review %d by %s attached to book %d", saved.review_id, user_id, entry.id)
        await self._presenter.emit(
            ReviewFinalized(user_id, saved.entry, saved.review_id, saved.review_count)
        )
        return saved
