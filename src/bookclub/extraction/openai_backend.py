# ABOUTME: OpenAI-backed extraction tiers using the Responses API with JSON-schema output.
# ABOUTME: A small model answers title/author; a larger model with web search looks up authors.

import json
import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from bookclub.extraction.inference import InferenceError, InferenceRateLimited, TierResult
from bookclub.metadata.types import Confidence

logger = logging.getLogger(__name__)

DEFAULT_CHEAP_MODEL = "gpt-4.1-nano"
DEFAULT_STRONG_MODEL = "gpt-4.1"

# Review context passed to the author lookup is truncated to this many characters.
_LOOKUP_CONTEXT_CHARS = 500

_CONFIDENCE_SCHEMA = {"type": "string", "enum": ["high", "medium", "low"]}


def _schema(name: str, field_name: str) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "name": name,
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                field_name: {"type": ["string", "null"]},
                "confidence": _CONFIDENCE_SCHEMA,
            },
            "required": [field_name, "confidence"],
            "additionalProperties": False,
        },
    }


_TITLE_FORMAT = _schema("title_extraction", "title")
_AUTHOR_FORMAT = _schema("author_extraction", "author")

_TITLE_INSTRUCTIONS = """Extract the primary book title from this review.

Rules:
- Identify the main book being reviewed
- Use the canonical English title for works not originally written in Russian
- Use the Cyrillic title for Russian-original works
- "high": title explicitly mentioned with quotes or clear attribution
- "medium": title clearly identifiable from context
- "low": title uncertain or multiple candidates"""

_AUTHOR_INSTRUCTIONS = """Given the book title "{title}", extract the author from this review.

Rules:
- Use Latin script for non-Russian authors (diacritics allowed)
- Use Cyrillic for Russian authors
- Use "GivenName Surname" format, no patronymics
- Use the full first name, not initials
- "high": author explicitly mentioned
- "medium": author inferable from context
- "low": author uncertain or not found"""

_LOOKUP_PROMPT = """Find the author of the book "{title}".

Context from review: {context}

Return the author name in the correct format:
- Latin script for non-Russian authors (diacritics allowed)
- Cyrillic for Russian authors
- "GivenName Surname" format, no patronymics
- Full first name, not initials"""


def _user_content(text: str, hint: str | None) -> str:
    """Review text, led by the command parameters when the reviewer gave some."""
    if not hint:
        return text
    return (
        f"Extract book information from these command parameters: \"{hint}\"\n\n"
        f"Context (original review text for reference):\n{text}"
    )


class OpenAIInference:
    """Implements both the cheap tiers and the augmented author lookup.

    API errors are translated into ``InferenceRateLimited`` (HTTP 429 or
    exhausted quota) or ``InferenceError`` (everything else, including
    output that is not the JSON we asked for).
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        cheap_model: str = DEFAULT_CHEAP_MODEL,
        strong_model: str = DEFAULT_STRONG_MODEL,
    ) -> None:
        self._client = client
        self._cheap_model = cheap_model
        self._strong_model = strong_model

    async def extract_title(self, text: str, hint: str | None = None) -> TierResult:
        payload = await self._call(
            model=self._cheap_model,
            instructions=_TITLE_INSTRUCTIONS,
            input=_user_content(text, hint),
            text={"format": _TITLE_FORMAT},
        )
        return self._tier_result(payload, "title", default=Confidence.LOW)

    async def extract_author(
        self, text: str, title: str, hint: str | None = None
    ) -> TierResult:
        payload = await self._call(
            model=self._cheap_model,
            instructions=_AUTHOR_INSTRUCTIONS.format(title=title),
            input=_user_content(text, hint),
            text={"format": _AUTHOR_FORMAT},
        )
        return self._tier_result(payload, "author", default=Confidence.LOW)

    async def lookup_author(self, title: str, context: str) -> TierResult:
        payload = await self._call(
            model=self._strong_model,
            input=_LOOKUP_PROMPT.format(title=title, context=context[:_LOOKUP_CONTEXT_CHARS]),
            tools=[{"type": "web_search_preview"}],
            text={"format": _AUTHOR_FORMAT},
        )
        # Web-backed answers without a stated confidence are trusted moderately.
        return self._tier_result(payload, "author", default=Confidence.MEDIUM)

    async def _call(self, **request: Any) -> dict[str, Any]:
        try:
            response = await self._client.responses.create(**request)
        except openai.RateLimitError as exc:
            raise InferenceRateLimited(str(exc)) from exc
        except openai.OpenAIError as exc:
            raise InferenceError(f"{request['model']} request failed: {exc}") from exc

        content = response.output_text
        logger.debug("%s answered: %s", request["model"], content)
        if not content:
            return {}
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise InferenceError(f"{request['model']} returned non-JSON output") from exc
        if not isinstance(payload, dict):
            raise InferenceError(f"{request['model']} returned {type(payload).__name__}")
        return payload

    @staticmethod
    def _tier_result(payload: dict[str, Any], field_name: str, default: Confidence) -> TierResult:
        value = payload.get(field_name) or None
        if value is None:
            return TierResult.missing()
        raw_confidence = payload.get("confidence")
        confidence = Confidence.parse(raw_confidence) if raw_confidence else default
        return TierResult(value=str(value).strip(), confidence=confidence)
