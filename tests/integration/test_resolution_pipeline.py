# ABOUTME: Integration tests running reviews through the fully wired application.
# ABOUTME: Real provider client over a mock HTTP transport, rule-based extraction, SQLite catalog.

import asyncio
import sqlite3
from pathlib import Path

import httpx
import pytest

from bookclub.app import Application, build_application
from bookclub.config import Settings
from bookclub.core.dispatch import ChatUpdate, Route
from bookclub.core.events import (
    ErrorKind,
    ErrorReported,
    OptionsPresented,
    RecordingPresenter,
    ReviewFinalized,
    TitlePrompted,
)
from bookclub.core.notify import AlertLevel
from bookclub.core.resolver import AutoResolved, NeedsConfirmation
from bookclub.core.sessions import SessionState
from bookclub.db.mapping import PendingReview
from bookclub.metadata.types import Confidence
from tests.fixtures.fakes import RecordingNotifier
from tests.fixtures.googlebooks_responses import (
    SEARCH_1984,
    SEARCH_EMPTY,
    SEARCH_HARRY_POTTER,
)


class GoogleBooksStub:
    """Mock transport handler answering volume queries by substring."""

    def __init__(self, routes: dict[str, dict] | None = None, status: int = 200) -> None:
        self._routes = routes or {}
        self._status = status
        self.queries: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        query = request.url.params.get("q", "")
        self.queries.append(query)
        if self._status != 200:
            return httpx.Response(self._status)
        for pattern, body in self._routes.items():
            if pattern in query:
                return httpx.Response(200, json=body)
        return httpx.Response(200, json=SEARCH_EMPTY)


def _app(
    conn: sqlite3.Connection,
    stub: GoogleBooksStub,
    notifier: RecordingNotifier | None = None,
    tmp_path: Path | None = None,
    **overrides: object,
) -> tuple[Application, RecordingPresenter]:
    if tmp_path:
        overrides["failure_log_dir"] = tmp_path
    settings = Settings(
        _env_file=None,
        delay_ms=0,
        max_retries=1,
        initial_backoff_ms=0,
        **overrides,
    )
    presenter = RecordingPresenter()
    app = build_application(
        settings,
        presenter,
        conn=conn,
        notifier=notifier,
        transport=httpx.MockTransport(stub),
        offline=True,
    )
    return app, presenter


class TestResolutionScenarios:
    """End-to-end resolution through the application wiring."""

    @pytest.mark.asyncio
    async def test_confident_review_auto_resolves(self, conn: sqlite3.Connection) -> None:
        """A clearly attributed review is cataloged without any questions."""
        stub = GoogleBooksStub({"1984": SEARCH_1984})
        app, presenter = _app(conn, stub)
        review = PendingReview(
            user_id="u1", review_text='"1984" by George Orwell. Terrifying.', message_id="m1"
        )

        outcome = await app.resolver.resolve(review)
        await app.fetcher.aclose()

        assert isinstance(outcome, AutoResolved)
        assert outcome.entry.title == "1984"
        assert outcome.entry.author == "George Orwell"
        assert outcome.entry.isbn == "9780547249643"
        assert stub.queries == ["intitle:1984+inauthor:George Orwell"]
        assert presenter.of_type(ReviewFinalized)

    @pytest.mark.asyncio
    async def test_second_review_reuses_book(self, conn: sqlite3.Connection) -> None:
        """A second review of the same book finds it locally, without the provider."""
        stub = GoogleBooksStub({"1984": SEARCH_1984})
        app, _ = _app(conn, stub)
        first = PendingReview(user_id="u1", review_text='"1984" by George Orwell', message_id="m1")
        second = PendingReview(user_id="u2", review_text='"1984" by George Orwell', message_id="m9")

        one = await app.resolver.resolve(first)
        two = await app.resolver.resolve(second)
        await app.fetcher.aclose()

        assert isinstance(one, AutoResolved)
        assert isinstance(two, AutoResolved)
        assert two.entry.id == one.entry.id
        assert two.review_count == 2
        assert len(stub.queries) == 1

    @pytest.mark.asyncio
    async def test_rate_limited_provider_degrades(self, conn: sqlite3.Connection) -> None:
        """Persistent 429s still save the review, flagged as degraded, and alert operators."""
        stub = GoogleBooksStub(status=429)
        notifier = RecordingNotifier()
        app, presenter = _app(conn, stub, notifier)
        review = PendingReview(
            user_id="u1", review_text='"1984" by George Orwell', message_id="m1"
        )

        outcome = await app.resolver.resolve(review)
        await app.fetcher.aclose()

        assert isinstance(outcome, AutoResolved)
        assert outcome.degraded
        assert outcome.entry.external_id is None
        # One initial request plus one retry, then the cascade stops.
        assert len(stub.queries) == 2
        assert [a["level"] for a in notifier.alerts] == [AlertLevel.WARNING]
        assert presenter.of_type(ReviewFinalized)[0].degraded

    @pytest.mark.asyncio
    async def test_ambiguous_review_confirmed_by_selection(
        self, conn: sqlite3.Connection
    ) -> None:
        """Two books in one review means asking; picking one finalizes the review."""
        stub = GoogleBooksStub({"1984": SEARCH_1984})
        app, presenter = _app(conn, stub)
        review = PendingReview(
            user_id="u1",
            review_text='"1984" is darker than "Brave New World", by George Orwell.',
            message_id="m1",
        )

        outcome = await app.resolver.resolve(review)
        assert isinstance(outcome, NeedsConfirmation)
        assert outcome.session.state is SessionState.SHOWING_OPTIONS
        options = presenter.of_type(OptionsPresented)[0]
        assert options.candidates[0].title == "1984"

        saved = await app.flow.select("u1", 0)
        await app.fetcher.aclose()

        assert saved is not None
        assert saved.entry.external_id == "kotPYEqx7kMC"
        assert not app.store.has_session("u1")

    @pytest.mark.asyncio
    async def test_isbn_path_through_dispatcher(self, conn: sqlite3.Connection) -> None:
        """Buttons and text messages walk a session from ISBN entry to a saved review."""
        stub = GoogleBooksStub(
            {"isbn:9780747532699": SEARCH_HARRY_POTTER, "1984": SEARCH_1984}
        )
        app, presenter = _app(conn, stub)
        dispatcher = app.dispatcher
        review_text = '#рецензия "1984" vs "Harry Potter", by George Orwell?'

        first = await dispatcher.dispatch(ChatUpdate("u1", "m1", text=review_text))
        assert isinstance(first.outcome, NeedsConfirmation)

        await dispatcher.dispatch(ChatUpdate("u1", "cb1", callback_data="confirm_isbn"))
        bad = await dispatcher.dispatch(ChatUpdate("u1", "m2", text="123-invalid"))
        assert bad.route is Route.SESSION_INPUT
        assert presenter.of_type(ErrorReported)[-1].kind is ErrorKind.INVALID_ISBN
        assert app.store.get("u1").state is SessionState.AWAITING_ISBN

        await dispatcher.dispatch(ChatUpdate("u1", "m3", text="978-0-7475-3269-9"))
        assert app.store.get("u1").state is SessionState.SHOWING_OPTIONS

        await dispatcher.dispatch(ChatUpdate("u1", "cb2", callback_data="confirm_book:0"))
        await app.fetcher.aclose()

        finalized = presenter.of_type(ReviewFinalized)
        assert finalized[0].entry.title == "Harry Potter and the Philosopher's Stone"
        assert app.catalog.has_review("u1", "m1")

    @pytest.mark.asyncio
    async def test_unknown_book_goes_to_manual_entry(
        self, conn: sqlite3.Connection, tmp_path: Path
    ) -> None:
        stub = GoogleBooksStub()
        app, _ = _app(conn, stub, tmp_path=tmp_path / "misses")
        review = PendingReview(
            user_id="u1", review_text='"Samizdat Notes" by Ivan Petrov', message_id="m1"
        )

        outcome = await app.resolver.resolve(review)
        assert isinstance(outcome, NeedsConfirmation)
        assert outcome.session.state is SessionState.AWAITING_TITLE

        await app.flow.handle_text("u1", "Samizdat Notes")
        await app.flow.handle_text("u1", "Ivan Petrov")
        await app.fetcher.aclose()

        assert [(e.title, e.author) for e in app.catalog.list_all()] == [
            ("Samizdat Notes", "Ivan Petrov")
        ]
        assert list((tmp_path / "misses").glob("*.log"))


class TestReferenceScenarios:
    """The three reference reviews: confident, bookless, and ambiguous."""

    @pytest.mark.asyncio
    async def test_clear_review_is_cataloged(self, conn: sqlite3.Connection) -> None:
        stub = GoogleBooksStub({"1984": SEARCH_1984})
        app, _ = _app(conn, stub)
        review = PendingReview(
            user_id="u1",
            review_text='Just read "1984" by George Orwell, loved it.',
            message_id="m1",
        )

        extraction = await app.pipeline.extract(review.review_text)
        assert (extraction.title, extraction.author) == ("1984", "George Orwell")
        assert extraction.confidence is Confidence.HIGH

        outcome = await app.resolver.resolve(review)
        await app.fetcher.aclose()

        assert isinstance(outcome, AutoResolved)
        assert outcome.entry.title == "1984"
        # Empty catalog, so the first cascade strategy answered.
        assert stub.queries == ["intitle:1984+inauthor:George Orwell"]

    @pytest.mark.asyncio
    async def test_review_without_book_asks_for_title(self, conn: sqlite3.Connection) -> None:
        stub = GoogleBooksStub()
        app, presenter = _app(conn, stub)
        review = PendingReview(
            user_id="u1", review_text="great discussion today!", message_id="m1"
        )

        outcome = await app.resolver.resolve(review)
        await app.fetcher.aclose()

        assert isinstance(outcome, NeedsConfirmation)
        assert outcome.session.candidates == []
        assert outcome.session.state is SessionState.AWAITING_TITLE
        assert presenter.of_type(TitlePrompted)
        assert stub.queries == []

    @pytest.mark.asyncio
    async def test_second_candidate_selected(self, conn: sqlite3.Connection) -> None:
        stub = GoogleBooksStub({"1984": SEARCH_1984})
        app, _ = _app(conn, stub)
        review = PendingReview(
            user_id="u1",
            review_text='"1984" and "Brave New World" back to back, by George Orwell.',
            message_id="m1",
        )

        outcome = await app.resolver.resolve(review)
        assert isinstance(outcome, NeedsConfirmation)
        assert outcome.session.state is SessionState.SHOWING_OPTIONS
        assert len(outcome.session.candidates) > 1
        second = outcome.session.candidates[1]

        saved = await app.flow.select("u1", 1)
        await app.fetcher.aclose()

        assert saved is not None
        assert saved.entry.title == second.title
        assert saved.entry.external_id == second.external_id
        assert app.store.get("u1") is None


class TestApplicationLifecycle:
    """Background work started and stopped by the application."""

    @pytest.mark.asyncio
    async def test_sweeper_evicts_expired_sessions(self, conn: sqlite3.Connection) -> None:
        app, _ = _app(
            conn, GoogleBooksStub(), session_expiry_ms=1, session_sweep_interval_s=0.01
        )
        app.start()
        outcome = await app.resolver.resolve(
            PendingReview(user_id="u1", review_text="great discussion today!", message_id="m1")
        )
        assert isinstance(outcome, NeedsConfirmation)

        await asyncio.sleep(0.1)

        assert len(app.store) == 0
        await app.aclose()
        assert app.sweeper is None
