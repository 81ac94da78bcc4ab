"""Data models for Feedback Analyzer."""

from .feedback import (
    Feedback,
    FeedbackConfidence,
    FeedbackRow,
    FeedbackSource,
    ProductArea,
    RawFeedbackInput,
    Sentiment,
    StoredFeedback,
    Urgency,
)
from .interaction import (
    Interaction,
    InteractionResponse,
    InteractionSession,
    InteractionState,
)
from .search import Citation, DigestReport, SearchResult

__all__ = [
    "Feedback",
    "FeedbackConfidence",
    "FeedbackRow",
    "FeedbackSource",
    "ProductArea",
    "RawFeedbackInput",
    "Sentiment",
    "StoredFeedback",
    "Urgency",
    "Interaction",
    "InteractionResponse",
    "InteractionSession",
    "InteractionState",
    "Citation",
    "DigestReport",
    "SearchResult",
]
