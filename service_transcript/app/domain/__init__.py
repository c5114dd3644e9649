"""
Domain layer for the Transcript Service.

Holds the transcript models, the error classifier and the retrieval
orchestrator (``domain.retrieval``, imported directly since it depends on the
caching package, which in turn stores these models). This is the only layer
that turns raw failures into taxonomy errors.
"""

from .classifier import CLASSIFICATION_RULES, ClassificationRule, classify
from .models import RetrievalOutcome, RetrievalResult, TranscriptSegment, format_offset

__all__ = [
    "CLASSIFICATION_RULES",
    "ClassificationRule",
    "RetrievalOutcome",
    "RetrievalResult",
    "TranscriptSegment",
    "classify",
    "format_offset",
]
