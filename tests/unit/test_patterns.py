# ABOUTME: Unit tests for the rule-based extraction tier.
# ABOUTME: Covers quoted titles, "Title by Author" lines, command hints, and author cues.

import pytest

from bookclub.extraction.inference import InferenceBackend
from bookclub.extraction.patterns import PatternInference
from bookclub.metadata.types import Confidence


@pytest.fixture
def backend() -> PatternInference:
    return PatternInference()


class TestPatternTitle:
    """Tests for PatternInference.extract_title."""

    def test_satisfies_protocol(self, backend: PatternInference) -> None:
        assert isinstance(backend, InferenceBackend)

    @pytest.mark.asyncio
    async def test_single_quoted_title_is_high(self, backend: PatternInference) -> None:
        result = await backend.extract_title('Just finished "1984" by George Orwell. Grim.')
        assert result.value == "1984"
        assert result.confidence is Confidence.HIGH

    @pytest.mark.asyncio
    async def test_guillemets(self, backend: PatternInference) -> None:
        """Russian-style quotes are recognized."""
        result = await backend.extract_title("Перечитал «Мастер и Маргарита», шедевр.")
        assert result.value == "Мастер и Маргарита"
        assert result.confidence is Confidence.HIGH

    @pytest.mark.asyncio
    async def test_several_titles_is_medium(self, backend: PatternInference) -> None:
        """Two different quoted titles make the first only medium confidence."""
        result = await backend.extract_title('"Dune" is better than "Foundation".')
        assert result.value == "Dune"
        assert result.confidence is Confidence.MEDIUM

    @pytest.mark.asyncio
    async def test_title_by_author_line(self, backend: PatternInference) -> None:
        result = await backend.extract_title("Dune by Frank Herbert\nLoved the worldbuilding.")
        assert result.value == "Dune"
        assert result.confidence is Confidence.HIGH

    @pytest.mark.asyncio
    async def test_hint_wins(self, backend: PatternInference) -> None:
        """Command parameters override whatever the review text says."""
        result = await backend.extract_title('Loved "Something Else".', hint="Dune — Frank Herbert")
        assert result.value == "Dune"
        assert result.confidence is Confidence.HIGH

    @pytest.mark.asyncio
    async def test_nothing_found(self, backend: PatternInference) -> None:
        result = await backend.extract_title("What a great weekend of reading!")
        assert result.value is None
        assert not result.is_usable


class TestPatternAuthor:
    """Tests for PatternInference.extract_author."""

    @pytest.mark.asyncio
    async def test_author_after_title_is_high(self, backend: PatternInference) -> None:
        result = await backend.extract_author('"1984" by George Orwell. Grim.', "1984")
        assert result.value == "George Orwell"
        assert result.confidence is Confidence.HIGH

    @pytest.mark.asyncio
    async def test_dash_cue(self, backend: PatternInference) -> None:
        result = await backend.extract_author('"Dune" — Frank Herbert', "Dune")
        assert result.value == "Frank Herbert"
        assert result.confidence is Confidence.HIGH

    @pytest.mark.asyncio
    async def test_author_elsewhere_is_medium(self, backend: PatternInference) -> None:
        """An author named away from the title is only medium confidence."""
        text = '"Dune" was long. The sequel by Frank Herbert is shorter.'
        result = await backend.extract_author(text, "Dune")
        assert result.value == "Frank Herbert"
        assert result.confidence is Confidence.MEDIUM

    @pytest.mark.asyncio
    async def test_author_from_hint(self, backend: PatternInference) -> None:
        result = await backend.extract_author("Loved it.", "Dune", hint="Dune by Frank Herbert")
        assert result.value == "Frank Herbert"
        assert result.confidence is Confidence.HIGH

    @pytest.mark.asyncio
    async def test_no_author(self, backend: PatternInference) -> None:
        result = await backend.extract_author('"Dune" was great.', "Dune")
        assert result.value is None
