# ABOUTME: Routes incoming chat updates to the confirmation flow or the resolver.
# ABOUTME: Priority: buttons, /review command, text for an open session, hashtag reviews.

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from bookclub.core.confirmation import ConfirmationFlow
from bookclub.core.resolver import BookIdentityResolver, Outcome
from bookclub.db.mapping import PendingReview

logger = logging.getLogger(__name__)

DEFAULT_REVIEW_HASHTAG = "#рецензия"
REVIEW_COMMAND = "/review"


@dataclass
class ChatUpdate:
    """One incoming update from a chat transport, reduced to what routing needs."""

    user_id: str
    message_id: str
    text: str = ""
    callback_data: str | None = None
    chat_id: str | None = None
    username: str | None = None
    display_name: str | None = None
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reply_to: "ChatUpdate | None" = None


class Route(str, Enum):
    CALLBACK = "callback"
    COMMAND = "command"
    SESSION_INPUT = "session_input"
    HASHTAG = "hashtag"
    IGNORED = "ignored"


@dataclass(frozen=True)
class DispatchResult:
    route: Route
    outcome: Outcome | None = None


def _as_review(update: ChatUpdate) -> PendingReview:
    return PendingReview(
        user_id=update.user_id,
        review_text=update.text,
        message_id=update.message_id,
        chat_id=update.chat_id,
        username=update.username,
        display_name=update.display_name,
        reviewed_at=update.sent_at,
    )


class UpdateDispatcher:
    """Decides what an incoming update means and hands it to the right component."""

    def __init__(
        self,
        resolver: BookIdentityResolver,
        flow: ConfirmationFlow,
        *,
        hashtag: str = DEFAULT_REVIEW_HASHTAG,
    ) -> None:
        self._resolver = resolver
        self._flow = flow
        self._hashtag = hashtag.lower()

    async def dispatch(self, update: ChatUpdate) -> DispatchResult:
        if update.callback_data is not None:
            handled = await self._flow.handle_callback(update.user_id, update.callback_data)
            return DispatchResult(Route.CALLBACK if handled else Route.IGNORED)

        text = update.text.strip()
        if text.startswith("/"):
            return await self._command(update, text)

        if await self._flow.handle_text(update.user_id, text):
            return DispatchResult(Route.SESSION_INPUT)

        if self._hashtag in text.lower():
            outcome = await self._resolver.resolve(_as_review(update))
            return DispatchResult(Route.HASHTAG, outcome)

        return DispatchResult(Route.IGNORED)

    async def _command(self, update: ChatUpdate, text: str) -> DispatchResult:
        """Handle "/review [Title — Author]" sent as a reply to the review message."""
        command, _, params = text.partition(" ")
        # Group chats address commands as "/review@botname".
        if command.split("@", 1)[0].lower() != REVIEW_COMMAND:
            return DispatchResult(Route.IGNORED)
        if update.reply_to is None or not update.reply_to.text.strip():
            logger.info("Ignoring /review from %s without a replied-to message", update.user_id)
            return DispatchResult(Route.IGNORED)

        outcome = await self._resolver.resolve(
            _as_review(update.reply_to), command_hint=params.strip() or None
        )
        return DispatchResult(Route.COMMAND, outcome)
