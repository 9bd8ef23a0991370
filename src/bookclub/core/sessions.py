# ABOUTME: Per-user confirmation sessions and the keyed store that owns them.
# ABOUTME: One live session per user, expired lazily on access and by a periodic sweep.

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from bookclub.db.mapping import PendingReview
from bookclub.metadata.candidate import BookCandidate
from bookclub.metadata.types import ExtractionResult

logger = logging.getLogger(__name__)

DEFAULT_SESSION_EXPIRY_MS = 15 * 60 * 1000


class SessionState(str, Enum):
    SHOWING_OPTIONS = "showing_options"
    AWAITING_ISBN = "awaiting_isbn"
    AWAITING_TITLE = "awaiting_title"
    AWAITING_AUTHOR = "awaiting_author"


# States in which the next plain-text message belongs to the session.
TEXT_INPUT_STATES = frozenset(
    {SessionState.AWAITING_ISBN, SessionState.AWAITING_TITLE, SessionState.AWAITING_AUTHOR}
)


class SessionConflictError(Exception):
    """Raised when a user who already has a live session starts another."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} already has an open confirmation session")
        self.user_id = user_id


@dataclass
class ConfirmationSession:
    """State of one reviewer's in-progress book confirmation."""

    user_id: str
    state: SessionState
    pending_review: PendingReview
    extraction: ExtractionResult | None = None
    candidates: list[BookCandidate] = field(default_factory=list)
    entered_title: str | None = None
    manual_entry_id: int | None = None
    created_at: float = 0.0


class SessionStore:
    """Keyed store of confirmation sessions with expiry.

    Map mutations run under one lock. Each user also gets a lock of their own
    (``lock_for``) that callers hold across a whole transition, so one user's
    inputs are applied strictly in order while other users proceed.
    """

    def __init__(
        self,
        *,
        expiry_ms: int = DEFAULT_SESSION_EXPIRY_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._expiry = expiry_ms / 1000
        self._clock = clock
        self._sessions: dict[str, ConfirmationSession] = {}
        self._user_locks: dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()

    def lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        return lock

    def _is_expired(self, session: ConfirmationSession) -> bool:
        return self._clock() - session.created_at > self._expiry

    async def create(self, session: ConfirmationSession) -> ConfirmationSession:
        """Register a new session, stamping its creation time.

        Raises:
            SessionConflictError: If the user already has a live session.
        """
        async with self._lock:
            existing = self._sessions.get(session.user_id)
            if existing is not None and not self._is_expired(existing):
                raise SessionConflictError(session.user_id)
            session.created_at = self._clock()
            self._sessions[session.user_id] = session
        logger.debug("Opened %s session for user %s", session.state.value, session.user_id)
        return session

    def get(self, user_id: str) -> ConfirmationSession | None:
        """The user's live session, evicting it first if it has expired."""
        session = self._sessions.get(user_id)
        if session is None:
            return None
        if self._is_expired(session):
            self._evict(user_id)
            return None
        return session

    def has_session(self, user_id: str) -> bool:
        return self.get(user_id) is not None

    async def clear(self, user_id: str) -> None:
        async with self._lock:
            self._sessions.pop(user_id, None)
            self._discard_lock(user_id)

    def _discard_lock(self, user_id: str) -> None:
        lock = self._user_locks.get(user_id)
        if lock is not None and not lock.locked():
            del self._user_locks[user_id]

    def _evict(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)
        logger.info("Confirmation session for user %s expired", user_id)

    async def sweep(self) -> list[str]:
        """Evict every expired session and return the affected user ids."""
        async with self._lock:
            expired = [uid for uid, s in self._sessions.items() if self._is_expired(s)]
            for user_id in expired:
                self._evict(user_id)
            # Locks of users without a session, left behind by finished transitions.
            for user_id in [uid for uid in self._user_locks if uid not in self._sessions]:
                self._discard_lock(user_id)
        return expired

    async def run_sweeper(self, interval_s: float = 60.0) -> None:
        """Sweep forever; run as a background task and cancel on shutdown."""
        while True:
            await asyncio.sleep(interval_s)
            await self.sweep()

    def __len__(self) -> int:
        return len(self._sessions)
