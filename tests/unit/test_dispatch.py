# ABOUTME: Unit tests for routing chat updates to the resolver or the confirmation flow.
# ABOUTME: Covers buttons, the /review reply command, session text, and hashtag reviews.

import pytest

from bookclub.core.books import BookService
from bookclub.core.confirmation import ConfirmationFlow
from bookclub.core.dedup import CatalogDeduplicator
from bookclub.core.dispatch import ChatUpdate, Route, UpdateDispatcher
from bookclub.core.events import RecordingPresenter
from bookclub.core.resolver import AutoResolved, BookIdentityResolver, NeedsConfirmation
from bookclub.core.sessions import SessionState, SessionStore
from bookclub.db.catalog import BookCatalog
from bookclub.extraction.patterns import PatternInference
from bookclub.extraction.pipeline import ExtractionPipeline
from bookclub.metadata.cascade import SearchCascade
from bookclub.metadata.types import BookMetadata
from tests.fixtures.fakes import FakeProvider

DUNE = BookMetadata(title="Dune", author="Frank Herbert", external_id="dune1")


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def dispatcher(
    books: BookService, dedup: CatalogDeduplicator, store: SessionStore
) -> UpdateDispatcher:
    provider = FakeProvider({"Dune": [DUNE]})
    flow = ConfirmationFlow(store, books, provider, RecordingPresenter())
    resolver = BookIdentityResolver(
        ExtractionPipeline(PatternInference()), dedup, SearchCascade(provider), books, flow
    )
    return UpdateDispatcher(resolver, flow)


class TestDispatch:
    """Tests for UpdateDispatcher.dispatch."""

    @pytest.mark.asyncio
    async def test_hashtag_review(
        self, dispatcher: UpdateDispatcher, catalog: BookCatalog
    ) -> None:
        """A #рецензия message is resolved as a review."""
        update = ChatUpdate("u1", "m1", text='#рецензия "Dune" by Frank Herbert. Spice!')

        result = await dispatcher.dispatch(update)

        assert result.route is Route.HASHTAG
        assert isinstance(result.outcome, AutoResolved)
        assert result.outcome.entry.external_id == "dune1"
        assert catalog.has_review("u1", "m1")

    @pytest.mark.asyncio
    async def test_hashtag_is_case_insensitive(self, dispatcher: UpdateDispatcher) -> None:
        update = ChatUpdate("u1", "m1", text='#Рецензия "Dune" by Frank Herbert')
        assert (await dispatcher.dispatch(update)).route is Route.HASHTAG

    @pytest.mark.asyncio
    async def test_plain_chat_ignored(self, dispatcher: UpdateDispatcher) -> None:
        result = await dispatcher.dispatch(ChatUpdate("u1", "m1", text="Anyone read Dune?"))
        assert result.route is Route.IGNORED
        assert result.outcome is None

    @pytest.mark.asyncio
    async def test_review_command_resolves_replied_message(
        self, dispatcher: UpdateDispatcher, catalog: BookCatalog
    ) -> None:
        """/review stores the replied-to message, using the parameters as a hint."""
        original = ChatUpdate("u1", "m7", text="Loved the sandworms, what a world.")
        command = ChatUpdate(
            "u1", "m8", text="/review Dune — Frank Herbert", reply_to=original
        )

        result = await dispatcher.dispatch(command)

        assert result.route is Route.COMMAND
        assert isinstance(result.outcome, AutoResolved)
        assert catalog.has_review("u1", "m7")
        assert not catalog.has_review("u1", "m8")

    @pytest.mark.asyncio
    async def test_review_command_with_bot_name(self, dispatcher: UpdateDispatcher) -> None:
        original = ChatUpdate("u1", "m7", text="Loved it.")
        command = ChatUpdate(
            "u1", "m8", text="/review@clubbot Dune by Frank Herbert", reply_to=original
        )
        assert (await dispatcher.dispatch(command)).route is Route.COMMAND

    @pytest.mark.asyncio
    async def test_review_command_without_reply_ignored(
        self, dispatcher: UpdateDispatcher
    ) -> None:
        result = await dispatcher.dispatch(ChatUpdate("u1", "m8", text="/review Dune"))
        assert result.route is Route.IGNORED

    @pytest.mark.asyncio
    async def test_other_commands_ignored(self, dispatcher: UpdateDispatcher) -> None:
        result = await dispatcher.dispatch(ChatUpdate("u1", "m8", text="/start"))
        assert result.route is Route.IGNORED

    @pytest.mark.asyncio
    async def test_session_text_beats_hashtag(
        self, dispatcher: UpdateDispatcher, store: SessionStore
    ) -> None:
        """While awaiting a title, the next message is the title even if it has the tag."""
        first = await dispatcher.dispatch(ChatUpdate("u1", "m1", text="#рецензия a fine read"))
        assert isinstance(first.outcome, NeedsConfirmation)
        assert store.get("u1").state is SessionState.AWAITING_TITLE

        result = await dispatcher.dispatch(ChatUpdate("u1", "m2", text="#рецензия Dune"))

        assert result.route is Route.SESSION_INPUT
        assert store.get("u1").state is SessionState.AWAITING_AUTHOR

    @pytest.mark.asyncio
    async def test_callback_routed_to_flow(
        self, dispatcher: UpdateDispatcher, store: SessionStore
    ) -> None:
        await dispatcher.dispatch(ChatUpdate("u1", "m1", text="#рецензия a fine read"))
        result = await dispatcher.dispatch(
            ChatUpdate("u1", "cb1", callback_data="confirm_cancel")
        )
        assert result.route is Route.CALLBACK
        assert store.get("u1") is None

    @pytest.mark.asyncio
    async def test_unknown_callback_ignored(self, dispatcher: UpdateDispatcher) -> None:
        result = await dispatcher.dispatch(ChatUpdate("u1", "cb1", callback_data="vote:1"))
        assert result.route is Route.IGNORED
