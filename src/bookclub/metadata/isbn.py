# ABOUTME: ISBN-10/ISBN-13 parsing and checksum validation for reviewer-entered ISBNs.
# ABOUTME: Accepts an optional "ISBN"/"ISBN-13:" prefix with hyphens or spaces between groups.

import re

_PREFIX_RE = re.compile(r"^\s*isbn(?:-1[03])?:?\s*", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"[\s-]")
_ISBN10_RE = re.compile(r"^\d{9}[\dX]$")
_ISBN13_RE = re.compile(r"^97[89]\d{10}$")


class InvalidIsbnError(ValueError):
    """Raised when text is not a well-formed ISBN with a valid checksum."""


def clean_isbn(text: str) -> str:
    """Strip prefix and separators; uppercase a trailing check 'x'."""
    return _SEPARATOR_RE.sub("", _PREFIX_RE.sub("", text)).upper()


def _isbn10_checksum_ok(digits: str) -> bool:
    total = 0
    for position, char in enumerate(digits):
        value = 10 if char == "X" else int(char)
        total += (10 - position) * value
    return total % 11 == 0


def _isbn13_checksum_ok(digits: str) -> bool:
    total = sum(int(char) * (1 if i % 2 == 0 else 3) for i, char in enumerate(digits[:12]))
    return (10 - total % 10) % 10 == int(digits[12])


def parse_isbn(text: str) -> str:
    """Validate an ISBN and return its bare digit form.

    Raises:
        InvalidIsbnError: If the text is not an ISBN-10 or ISBN-13 with a
            correct check digit.
    """
    candidate = clean_isbn(text)
    if _ISBN13_RE.match(candidate) and _isbn13_checksum_ok(candidate):
        return candidate
    if _ISBN10_RE.match(candidate) and _isbn10_checksum_ok(candidate):
        return candidate
    raise InvalidIsbnError(f"Not a valid ISBN: {text!r}")


def is_valid_isbn(text: str) -> bool:
    try:
        parse_isbn(text)
    except InvalidIsbnError:
        return False
    return True
