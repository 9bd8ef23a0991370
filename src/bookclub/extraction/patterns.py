# ABOUTME: Offline rule-based extraction tier for quoted titles and "Title by Author" phrasing.
# ABOUTME: Used when no language model is configured and as a deterministic backend in tests.

import re

from bookclub.extraction.inference import TierResult
from bookclub.metadata.similarity import normalize_text
from bookclub.metadata.types import Confidence
from bookclub.metadata.variants import is_likely_person_name

_QUOTED_RE = re.compile(r"«([^»]+)»|“([^”]+)”|\"([^\"]+)\"")
# "Title by Author" or "Title — Author" on a single line.
_TITLE_AUTHOR_RE = re.compile(r"^\s*(?P<title>[^\n]+?)\s+(?:by|[—–-])\s+(?P<author>[^\n]+?)\s*$")
# Author cue immediately following the title.
_AUTHOR_LEAD_RE = re.compile(r"^\s*[,.]?\s*(?:by\b|[—–-])\s*(?P<rest>.+)", re.DOTALL)
_AUTHOR_ANYWHERE_RE = re.compile(r"\bby\s+(?P<rest>.+)", re.DOTALL)
_TRAILING_PUNCT = ".,;:!?)»\"”'"


def _leading_name(text: str) -> str | None:
    """The 2-3 word person name at the start of ``text``, if there is one."""
    words: list[str] = []
    for raw in text.split()[:3]:
        word = raw.rstrip(_TRAILING_PUNCT)
        if not word:
            break
        words.append(word)
        if word != raw:
            break
    for size in (3, 2):
        if len(words) >= size:
            candidate = " ".join(words[:size])
            if is_likely_person_name(candidate):
                return candidate
    return None


def _quoted_titles(text: str) -> list[tuple[str, int]]:
    """Distinct quoted spans with the offset where each one ends."""
    titles: list[tuple[str, int]] = []
    seen: set[str] = set()
    for match in _QUOTED_RE.finditer(text):
        value = next(group for group in match.groups() if group).strip()
        key = normalize_text(value)
        if key and key not in seen:
            seen.add(key)
            titles.append((value, match.end()))
    return titles


def _split_title_author(text: str) -> tuple[str, str] | None:
    match = _TITLE_AUTHOR_RE.match(text)
    if match and is_likely_person_name(match.group("author").rstrip(_TRAILING_PUNCT)):
        return match.group("title").strip(), match.group("author").rstrip(_TRAILING_PUNCT)
    return None


class PatternInference:
    """Rule-based stand-in for a language model.

    A single quoted title is high confidence; several distinct quoted titles
    mean the review is about more than one book, so the first is only medium.
    An author right after the title ("by X", "— X") is high confidence, one
    found elsewhere after "by" is medium.
    """

    async def extract_title(self, text: str, hint: str | None = None) -> TierResult:
        if hint:
            split = _split_title_author(hint)
            title = split[0] if split else hint.strip().strip("\"«»“”")
            if title:
                return TierResult(title, Confidence.HIGH)

        quoted = _quoted_titles(text)
        if quoted:
            confidence = Confidence.HIGH if len(quoted) == 1 else Confidence.MEDIUM
            return TierResult(quoted[0][0], confidence)

        first_line = text.strip().splitlines()[0] if text.strip() else ""
        split = _split_title_author(first_line)
        if split:
            return TierResult(split[0], Confidence.HIGH)
        return TierResult.missing()

    async def extract_author(
        self, text: str, title: str, hint: str | None = None
    ) -> TierResult:
        if hint:
            split = _split_title_author(hint)
            if split:
                return TierResult(split[1], Confidence.HIGH)

        for source in (hint or "", text):
            position = source.find(title)
            if position < 0:
                continue
            after = source[position + len(title) :].lstrip(_TRAILING_PUNCT)
            lead = _AUTHOR_LEAD_RE.match(after)
            if lead:
                name = _leading_name(lead.group("rest"))
                if name:
                    return TierResult(name, Confidence.HIGH)

        anywhere = _AUTHOR_ANYWHERE_RE.search(text)
        if anywhere:
            name = _leading_name(anywhere.group("rest"))
            if name:
                return TierResult(name, Confidence.MEDIUM)
        return TierResult.missing()
