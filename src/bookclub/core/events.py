# ABOUTME: Transport-neutral events emitted by the resolver and confirmation flow.
# ABOUTME: A chat or console transport renders these; it never touches session state directly.

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from bookclub.db.mapping import CatalogEntry
from bookclub.metadata.candidate import BookCandidate
from bookclub.metadata.types import ExtractionResult

# Button payloads shared with transports.
CALLBACK_SELECT_PREFIX = "confirm_book:"
CALLBACK_ISBN = "confirm_isbn"
CALLBACK_MANUAL = "confirm_manual"
CALLBACK_CANCEL = "confirm_cancel"


class ErrorKind(str, Enum):
    INVALID_ISBN = "invalid_isbn"
    ISBN_NOT_FOUND = "isbn_not_found"
    RATE_LIMITED = "rate_limited"
    PERSISTENCE = "persistence"
    SESSION_EXPIRED = "session_expired"
    SESSION_OPEN = "session_open"
    INVALID_ACTION = "invalid_action"
    DUPLICATE_REVIEW = "duplicate_review"


@dataclass(frozen=True)
class OptionsPresented:
    user_id: str
    candidates: list[BookCandidate]
    extraction: ExtractionResult | None = None


@dataclass(frozen=True)
class IsbnPrompted:
    user_id: str


@dataclass(frozen=True)
class TitlePrompted:
    user_id: str


@dataclass(frozen=True)
class AuthorPrompted:
    user_id: str
    title: str


@dataclass(frozen=True)
class ErrorReported:
    user_id: str
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class ReviewFinalized:
    user_id: str
    entry: CatalogEntry
    review_id: int
    review_count: int
    degraded: bool = False


@dataclass(frozen=True)
class SessionCancelled:
    user_id: str


Event = (
    OptionsPresented
    | IsbnPrompted
    | TitlePrompted
    | AuthorPrompted
    | ErrorReported
    | ReviewFinalized
    | SessionCancelled
)


@runtime_checkable
class Presenter(Protocol):
    """Receives events for display on some transport."""

    async def emit(self, event: Event) -> None: ...


@dataclass
class RecordingPresenter:
    """Presenter that keeps every event; used headless and in tests."""

    events: list[Event] = field(default_factory=list)

    async def emit(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[Event]:
        return [e for e in self.events if isinstance(e, event_type)]
