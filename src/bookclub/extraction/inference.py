# ABOUTME: Contracts for the inference backends behind the extraction tiers.
# ABOUTME: A tier answers with a value and a confidence; failures surface as InferenceError.

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from bookclub.metadata.types import Confidence


class InferenceError(Exception):
    """A tier call failed: provider error, malformed output, or similar."""


class InferenceRateLimited(InferenceError):
    """The inference provider refused the call for rate or quota reasons."""


@dataclass(frozen=True)
class TierResult:
    """What one extraction tier inferred for one field."""

    value: str | None
    confidence: Confidence = Confidence.LOW

    @classmethod
    def missing(cls) -> "TierResult":
        return cls(value=None, confidence=Confidence.LOW)

    @property
    def is_usable(self) -> bool:
        return bool(self.value) and self.confidence is not Confidence.LOW


@runtime_checkable
class InferenceBackend(Protocol):
    """Cheap tier: title from the review, then author given the title."""

    async def extract_title(self, text: str, hint: str | None = None) -> TierResult: ...

    async def extract_author(
        self, text: str, title: str, hint: str | None = None
    ) -> TierResult: ...


@runtime_checkable
class AuthorLookup(Protocol):
    """Stronger tier consulted when the cheap author answer is weak."""

    async def lookup_author(self, title: str, context: str) -> TierResult: ...
