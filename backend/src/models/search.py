"""Search and digest data models."""

from typing import Any

from pydantic import BaseModel, Field


class Citation(BaseModel):
    """A supporting excerpt returned by the semantic search."""

    text: str
    source_url: str | None = None


class SearchResult(BaseModel):
    """Answer and citations from one semantic search call."""

    answer: str
    citations: list[Citation] = Field(default_factory=list)
    raw: Any = None


class SourceSentimentStat(BaseModel):
    """Count of feedback for one source/product_area/sentiment group."""

    source: str
    product_area: str
    sentiment: str
    count: int


class UrgencyCount(BaseModel):
    """Count of feedback for one urgency level."""

    urgency: str
    count: int


class HighUrgencySample(BaseModel):
    """Excerpt of a high or p1 urgency feedback item."""

    body_text: str
    source_url: str | None = None


class DigestReport(BaseModel):
    """Deterministic aggregates plus the semantic summary for one day."""

    date: str = Field(..., description="Calendar day (YYYY-MM-DD)")
    total_feedback: int
    stats_by_source_sentiment: list[SourceSentimentStat] = Field(default_factory=list)
    urgency_trends: list[UrgencyCount] = Field(default_factory=list)
    high_urgency_samples: list[HighUrgencySample] = Field(default_factory=list)
    ai_summary: str
    citations: list[Citation] = Field(default_factory=list)
