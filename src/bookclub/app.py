# ABOUTME: Wires settings into a working resolver: catalog, provider, extraction, sessions.
# ABOUTME: Transports (CLI, chat bots) build one Application and feed it updates.

import asyncio
import contextlib
import sqlite3
from dataclasses import dataclass, field

import httpx
from openai import AsyncOpenAI

from bookclub.config import Settings
from bookclub.core.books import BookService
from bookclub.core.confirmation import ConfirmationFlow
from bookclub.core.dedup import CatalogDeduplicator
from bookclub.core.dispatch import UpdateDispatcher
from bookclub.core.events import Presenter
from bookclub.core.failure_log import FailureLog
from bookclub.core.notify import AlertHooks, LoggingNotifier, Notifier
from bookclub.core.resolver import BookIdentityResolver
from bookclub.core.sessions import SessionStore
from bookclub.db.catalog import BookCatalog
from bookclub.db.connection import open_catalog
from bookclub.extraction.inference import AuthorLookup, InferenceBackend
from bookclub.extraction.openai_backend import OpenAIInference
from bookclub.extraction.patterns import PatternInference
from bookclub.extraction.pipeline import ExtractionPipeline
from bookclub.metadata.cascade import SearchCascade
from bookclub.metadata.googlebooks import GoogleBooksProvider
from bookclub.metadata.http import RateLimitedFetcher
from bookclub.metadata.provider import BibliographicProvider
from bookclub.metadata.similarity import MatchThresholds


@dataclass
class Application:
    """Every long-lived component, built once per process."""

    settings: Settings
    conn: sqlite3.Connection
    catalog: BookCatalog
    fetcher: RateLimitedFetcher
    provider: BibliographicProvider
    cascade: SearchCascade
    pipeline: ExtractionPipeline
    store: SessionStore
    flow: ConfirmationFlow
    resolver: BookIdentityResolver
    dispatcher: UpdateDispatcher
    sweeper: asyncio.Task[None] | None = field(default=None, repr=False)

    def start(self) -> None:
        """Start sweeping expired confirmation sessions in the background."""
        if self.sweeper is None:
            self.sweeper = asyncio.create_task(
                self.store.run_sweeper(self.settings.session_sweep_interval_s)
            )

    async def aclose(self) -> None:
        if self.sweeper is not None:
            self.sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.sweeper
            self.sweeper = None
        await self.fetcher.aclose()
        self.conn.close()


def build_inference(
    settings: Settings, *, offline: bool = False
) -> tuple[InferenceBackend, AuthorLookup | None]:
    """OpenAI tiers when a key is configured, otherwise the rule-based tier alone."""
    if offline or not settings.openai_api_key:
        return PatternInference(), None
    backend = OpenAIInference(
        AsyncOpenAI(api_key=settings.openai_api_key),
        cheap_model=settings.cheap_model,
        strong_model=settings.strong_model,
    )
    return backend, backend


def build_application(
    settings: Settings,
    presenter: Presenter,
    *,
    conn: sqlite3.Connection | None = None,
    provider: BibliographicProvider | None = None,
    backend: InferenceBackend | None = None,
    author_lookup: AuthorLookup | None = None,
    notifier: Notifier | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    offline: bool = False,
) -> Application:
    """Assemble the application; any collaborator can be swapped in for tests."""
    hooks = AlertHooks(notifier or LoggingNotifier())
    conn = conn or open_catalog(settings.db_path)
    catalog = BookCatalog(conn)

    fetcher = RateLimitedFetcher(
        delay_ms=settings.delay_ms,
        max_retries=settings.max_retries,
        initial_backoff_ms=settings.initial_backoff_ms,
        transport=transport,
        on_rate_limit=hooks.provider_rate_limited,
    )
    provider = provider or GoogleBooksProvider(fetcher, api_key=settings.google_books_api_key)
    cascade = SearchCascade(provider)

    if backend is None:
        backend, author_lookup = build_inference(settings, offline=offline)
    pipeline = ExtractionPipeline(
        backend,
        author_lookup,
        mode=settings.pipeline_mode,
        tier_timeout_s=settings.inference_timeout_s,
        on_error=hooks.inference_failed,
        on_rate_limit=hooks.inference_rate_limited,
    )

    thresholds = MatchThresholds(
        title=settings.title_similarity_threshold,
        author=settings.author_similarity_threshold,
    )
    deduplicator = CatalogDeduplicator(catalog, thresholds)
    books = BookService(catalog, deduplicator)
    store = SessionStore(expiry_ms=settings.session_expiry_ms)
    flow = ConfirmationFlow(store, books, provider, presenter)
    resolver = BookIdentityResolver(
        pipeline,
        deduplicator,
        cascade,
        books,
        flow,
        failure_log=FailureLog(settings.failure_log_dir),
        max_candidates=settings.max_candidates,
    )
    dispatcher = UpdateDispatcher(resolver, flow, hashtag=settings.review_hashtag)
    return Application(
        settings=settings,
        conn=conn,
        catalog=catalog,
        fetcher=fetcher,
        provider=provider,
        cascade=cascade,
        pipeline=pipeline,
        store=store,
        flow=flow,
        resolver=resolver,
        dispatcher=dispatcher,
    )
