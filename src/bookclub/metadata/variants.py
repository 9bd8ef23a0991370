# ABOUTME: Generates alternative spellings of titles and author names for fallback searches.
# ABOUTME: Strips subtitles, splits hashtag/CamelCase titles with wordninja, reorders "Last, First".

import re

import wordninja

# Spaceless strings shorter than this (e.g. "Dune", "1984") are left alone.
_MIN_CONCAT_LENGTH = 8

_CAMEL_CASE_RE = re.compile(r"[a-z][A-Z]")
_CAMEL_LOWER_UPPER_RE = re.compile(r"([a-z\d])([A-Z])")
_CAMEL_UPPER_SEQUENCE_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATOR_RE = re.compile(r"[-_#]")
# Subtitle after ": " or " - " / " — ".
_SUBTITLE_RE = re.compile(r"\s*(?::\s+|\s[-–—]\s).+$")
_QUOTES_RE = re.compile(r"[\"'«»“”„‘’]")

# Words that show up in titles but never in person names.
_TITLE_STOP_WORDS = frozenset(
    {"the", "a", "an", "of", "and", "in", "on", "at", "to", "for", "by", "with", "from"}
)


def strip_subtitle(title: str) -> str | None:
    """Remove a subtitle ("Title: Subtitle", "Title - Subtitle").

    Returns None when there was no subtitle or nothing would be left.
    """
    stripped = _SUBTITLE_RE.sub("", title).strip()
    if stripped and stripped != title.strip():
        return stripped
    return None


def _needs_splitting(text: str) -> bool:
    """Whether a title looks like joined words ("#TheGreatGatsby", "brave_new_world")."""
    text = text.strip()
    if not text:
        return False
    if "_" in text or text.startswith("#") or _CAMEL_CASE_RE.search(text):
        return True
    return " " not in text and text.isascii() and len(text) >= _MIN_CONCAT_LENGTH


def split_concatenated(text: str) -> str:
    """Split a hashtag, CamelCase or run-together title into words.

    ASCII lowercase runs are split with wordninja's unigram model; other
    scripts are only split on separators and case changes.
    """
    if not _needs_splitting(text):
        return text

    words: list[str] = []
    for segment in _SEPARATOR_RE.split(text):
        segment = segment.strip()
        if not segment:
            continue
        marked = _CAMEL_LOWER_UPPER_RE.sub(r"\1 \2", segment)
        marked = _CAMEL_UPPER_SEQUENCE_RE.sub(r"\1 \2", marked)
        for part in marked.split():
            if part.isascii() and part.islower() and len(part) >= _MIN_CONCAT_LENGTH:
                words.extend(wordninja.split(part) or [part])
            else:
                words.append(part)
    return " ".join(words)


def is_likely_person_name(text: str) -> bool:
    """Heuristic: 2-3 capitalized words (initials allowed), no title stop words."""
    words = text.split()
    if len(words) < 2 or len(words) > 3:
        return False
    if not all(word[0].isupper() for word in words):
        return False
    return not any(word.lower() in _TITLE_STOP_WORDS for word in words)


def title_variants(title: str) -> list[str]:
    """Alternative titles to try after the primary one, in priority order."""
    variants: list[str] = []

    def add(value: str | None) -> None:
        if value and value.strip() and value.strip() != title.strip() and value not in variants:
            variants.append(value.strip())

    unquoted = _QUOTES_RE.sub("", title).strip()
    add(unquoted)
    add(strip_subtitle(unquoted))
    add(split_concatenated(unquoted))
    return variants


def author_variants(author: str | None) -> list[str]:
    """Alternative author spellings: "Last, First" reordered, then surname only."""
    if not author or not author.strip():
        return []
    author = author.strip()
    variants: list[str] = []

    if "," in author:
        last, first = (part.strip() for part in author.split(",", 1))
        if first and last:
            variants.append(f"{first} {last}")

    full = variants[0] if variants else author
    parts = full.split()
    if len(parts) > 1 and len(parts[-1]) > 1:
        variants.append(parts[-1])
    return [v for v in variants if v != author]
