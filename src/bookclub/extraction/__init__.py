# ABOUTME: Extraction package: infers a book's title and author from review text.
# ABOUTME: Exports the staged pipeline and the backend contracts it runs on.

from bookclub.extraction.inference import (
    AuthorLookup,
    InferenceBackend,
    InferenceError,
    InferenceRateLimited,
    TierResult,
)
from bookclub.extraction.pipeline import ExtractionPipeline, PipelineMetrics, PipelineMode

__all__ = [
    "AuthorLookup",
    "ExtractionPipeline",
    "InferenceBackend",
    "InferenceError",
    "InferenceRateLimited",
    "PipelineMetrics",
    "PipelineMode",
    "TierResult",
]
