# ABOUTME: Staged title/author extraction: cheap title tier, cheap author tier, author escalation.
# ABOUTME: Never raises; failed or rate-limited tiers degrade to "nothing found, low confidence".

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from bookclub.extraction.inference import (
    AuthorLookup,
    InferenceBackend,
    InferenceError,
    InferenceRateLimited,
    TierResult,
)
from bookclub.metadata.types import Confidence, ExtractionResult, combine_confidence

logger = logging.getLogger(__name__)

DEFAULT_TIER_TIMEOUT_S = 30.0

ErrorHook = Callable[[Exception, str], Awaitable[None]]


class PipelineMode(str, Enum):
    CHEAP_ONLY = "cheap_only"
    ESCALATE = "escalate"


@dataclass
class PipelineMetrics:
    """Running counters for the extraction tiers."""

    title_calls: int = 0
    author_calls: int = 0
    escalations: int = 0
    failures: int = 0
    rate_limited: int = 0


class ExtractionPipeline:
    """Infers title and author from a review in up to three tier calls.

    1. Title (cheap). No title, or a low-confidence one, ends extraction
       with an empty result; the title is never escalated.
    2. Author (cheap), given the title.
    3. If the author is missing or below high confidence, ask the stronger
       lookup tier. Its answer replaces the cheap one unless it is empty
       or strictly less confident.

    The overall confidence is the weaker of the title and author confidences.
    """

    def __init__(
        self,
        backend: InferenceBackend,
        author_lookup: AuthorLookup | None = None,
        *,
        mode: PipelineMode = PipelineMode.ESCALATE,
        tier_timeout_s: float = DEFAULT_TIER_TIMEOUT_S,
        on_error: ErrorHook | None = None,
        on_rate_limit: ErrorHook | None = None,
    ) -> None:
        self._backend = backend
        self._author_lookup = author_lookup
        self._mode = mode
        self._timeout = tier_timeout_s
        self._on_error = on_error
        self._on_rate_limit = on_rate_limit
        self.metrics = PipelineMetrics()

    async def extract(self, review_text: str, command_hint: str | None = None) -> ExtractionResult:
        """Extract title/author from a review and an optional "Title — Author" hint."""
        self.metrics.title_calls += 1
        title = await self._run_tier(
            "title", lambda: self._backend.extract_title(review_text, command_hint)
        )
        title_value = title.value
        if not title.is_usable or title_value is None:
            logger.info("No confident title in review (confidence=%s)", title.confidence.value)
            return ExtractionResult.empty()

        self.metrics.author_calls += 1
        author = await self._run_tier(
            "author",
            lambda: self._backend.extract_author(review_text, title_value, command_hint),
        )

        if self._should_escalate(author):
            self.metrics.escalations += 1
            context = f"{command_hint}\n\n{review_text}" if command_hint else review_text
            escalated = await self._run_tier(
                "author lookup", lambda: self._author_lookup.lookup_author(title_value, context)
            )
            if escalated.value and (
                not author.value or escalated.confidence.rank >= author.confidence.rank
            ):
                author = escalated

        result = ExtractionResult(
            title=title_value,
            author=author.value,
            confidence=combine_confidence(title.confidence, author.confidence),
        )
        logger.info(
            "Extracted %r by %r (%s)", result.title, result.author, result.confidence.value
        )
        return result

    def _should_escalate(self, author: TierResult) -> bool:
        if self._mode is PipelineMode.CHEAP_ONLY or self._author_lookup is None:
            return False
        return not author.value or author.confidence is not Confidence.HIGH

    async def _run_tier(self, name: str, call: Callable[[], Awaitable[TierResult]]) -> TierResult:
        """Run one tier with a timeout, mapping any failure to a missing result."""
        try:
            return await asyncio.wait_for(call(), timeout=self._timeout)
        except InferenceRateLimited as exc:
            self.metrics.rate_limited += 1
            logger.warning("Inference rate limited during %s tier: %s", name, exc)
            await self._notify(self._on_rate_limit, exc, name)
        except (InferenceError, TimeoutError) as exc:
            self.metrics.failures += 1
            logger.warning("%s tier failed: %s", name.capitalize(), exc or type(exc).__name__)
            await self._notify(self._on_error, exc, name)
        except Exception as exc:
            self.metrics.failures += 1
            logger.exception("Unexpected error in %s tier", name)
            await self._notify(self._on_error, exc, name)
        return TierResult.missing()

    @staticmethod
    async def _notify(hook: ErrorHook | None, exc: Exception, tier: str) -> None:
        if hook is None:
            return
        try:
            await hook(exc, f"{tier} extraction")
        except Exception:
            logger.exception("Extraction alert hook failed")
