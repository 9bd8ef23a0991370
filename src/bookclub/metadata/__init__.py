# ABOUTME: Metadata package: provider records, similarity, ISBNs, and external lookup.
# ABOUTME: Exports the types shared by the resolver, the catalog, and the confirmation flow.

from bookclub.metadata.candidate import BookCandidate, CandidateSource, Similarity
from bookclub.metadata.provider import BibliographicProvider
from bookclub.metadata.similarity import MatchThresholds, similarity
from bookclub.metadata.types import (
    BookMetadata,
    Confidence,
    ExtractionResult,
    combine_confidence,
)

__all__ = [
    "BibliographicProvider",
    "BookCandidate",
    "BookMetadata",
    "CandidateSource",
    "Confidence",
    "ExtractionResult",
    "MatchThresholds",
    "Similarity",
    "combine_confidence",
    "similarity",
]
