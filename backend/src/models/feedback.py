"""Canonical feedback data models."""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FeedbackSource(str, Enum):
    """Channel the feedback arrived from."""

    DISCORD = "discord"
    GITHUB = "github"
    SUPPORT = "support"
    TWITTER = "twitter"
    EMAIL = "email"


class ProductArea(str, Enum):
    """Product area the feedback is about."""

    AUTH = "auth"
    BILLING = "billing"
    WORKERS = "workers"
    AI = "ai"
    WORKERS_AI = "workers-ai"
    D1 = "d1"
    R2 = "r2"
    OTHER = "other"  # Used when the model is uncertain


class Sentiment(str, Enum):
    """Overall tone of the feedback."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Urgency(str, Enum):
    """How quickly the feedback needs attention."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    P1 = "p1"

    @property
    def rank(self) -> int:
        """Position in the low < medium < high < p1 ordering."""
        return list(Urgency).index(self)


# Urgencies that count as "high urgency" for digests
HIGH_URGENCIES = (Urgency.HIGH, Urgency.P1)


class FeedbackConfidence(BaseModel):
    """Model-reported confidence for the classified fields."""

    product_area: float | None = Field(None, ge=0.0, le=1.0)
    sentiment: float | None = Field(None, ge=0.0, le=1.0)
    urgency: float | None = Field(None, ge=0.0, le=1.0)


class Feedback(BaseModel):
    """Canonical feedback record shared by every component."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: str  # ISO 8601 timestamp
    source: FeedbackSource
    source_url: str | None = None
    product_area: ProductArea
    title: str | None = Field(None, max_length=100)
    author: str | None = None
    thread_id: str | None = None
    body_text: str
    sentiment: Sentiment
    urgency: Urgency
    tags: list[str] = Field(default_factory=list)
    confidence: FeedbackConfidence | None = None

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document stored in the object store."""
        return self.model_dump(mode="json", exclude_none=True)


class FeedbackRow(BaseModel):
    """Flattened shape of a row in the relational ``feedback`` table."""

    id: str
    created_at: str
    source: str
    source_url: str | None = None
    product_area: str
    title: str | None = None
    author: str | None = None
    thread_id: str | None = None
    body_text: str
    sentiment: str
    urgency: str
    tags_json: str | None = None
    confidence_json: str | None = None
    r2_key: str


class StoredFeedback(Feedback):
    """A feedback record read back from the relational store."""

    r2_key: str


class RawFeedbackInput(BaseModel):
    """Loosely-typed raw feedback as submitted by a channel integration.

    Any subset of the known fields may be present, and unknown keys are
    kept so the normalizer sees everything the caller sent.
    """

    model_config = ConfigDict(extra="allow")

    # Values are passed to the normalizer as sent (objects, lists, numbers)
    id: Any = None
    source: Any = None
    source_url: Any = None
    author: Any = None
    thread_id: Any = None
    content: Any = None
    body: Any = None
    text: Any = None
    message: Any = None
    title: Any = None
    timestamp: Any = None
    created_at: Any = None

    def to_payload(self) -> dict[str, Any]:
        """Return the fields the caller actually supplied, extras included."""
        return self.model_dump(exclude_none=True)


def feedback_to_row(feedback: Feedback, r2_key: str) -> FeedbackRow:
    """Convert a Feedback record to its relational row."""
    return FeedbackRow(
        id=feedback.id,
        created_at=feedback.created_at,
        source=feedback.source.value,
        source_url=feedback.source_url,
        product_area=feedback.product_area.value,
        title=feedback.title,
        author=feedback.author,
        thread_id=feedback.thread_id,
        body_text=feedback.body_text,
        sentiment=feedback.sentiment.value,
        urgency=feedback.urgency.value,
        tags_json=json.dumps(feedback.tags) if feedback.tags else None,
        confidence_json=(
            feedback.confidence.model_dump_json(exclude_none=True)
            if feedback.confidence
            else None
        ),
        r2_key=r2_key,
    )


def row_to_feedback(row: FeedbackRow) -> StoredFeedback:
    """Convert a relational row back to a Feedback record."""
    return StoredFeedback(
        id=row.id,
        created_at=row.created_at,
        source=FeedbackSource(row.source),
        source_url=row.source_url,
        product_area=ProductArea(row.product_area),
        title=row.title,
        author=row.author,
        thread_id=row.thread_id,
        body_text=row.body_text,
        sentiment=Sentiment(row.sentiment),
        urgency=Urgency(row.urgency),
        tags=json.loads(row.tags_json) if row.tags_json else [],
        confidence=(
            FeedbackConfidence.model_validate_json(row.confidence_json)
            if row.confidence_json
            else None
        ),
        r2_key=row.r2_key,
    )
