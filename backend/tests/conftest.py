"""Pytest configuration and shared fixtures."""

import os
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from models.feedback import (
    Feedback,
    FeedbackConfidence,
    FeedbackSource,
    ProductArea,
    Sentiment,
    Urgency,
)
from services.feedback_repository import FeedbackRepository

# Fake AWS credentials so boto3 never reaches a real account
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-west-2")


@pytest.fixture
def sample_feedback():
    """Create a sample canonical feedback record."""
    return Feedback(
        id="fb-001",
        created_at="2026-01-09T10:15:00+00:00",
        source=FeedbackSource.DISCORD,
        source_url="https://discord.com/channels/123/456/789",
        product_area=ProductArea.D1,
        title="D1 queries are slow",
        author="user_alice",
        thread_id="thread-001",
        body_text="D1 queries are slow when the table grows past a million rows.",
        sentiment=Sentiment.NEGATIVE,
        urgency=Urgency.HIGH,
        tags=["performance", "bug"],
        confidence=FeedbackConfidence(product_area=0.9, sentiment=0.8, urgency=0.6),
    )


@pytest.fixture
def make_feedback(sample_feedback):
    """Factory for feedback records that differ from the sample."""

    def _make(**overrides) -> Feedback:
        return sample_feedback.model_copy(update=overrides)

    return _make


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def repository(sqlite_engine):
    """FeedbackRepository with the schema created."""
    repo = FeedbackRepository(sqlite_engine)
    repo.create_schema()
    return repo


@pytest.fixture
def mock_bedrock_client():
    """Create a mock Bedrock runtime client returning a JSON object."""
    client = Mock()
    client.converse.return_value = converse_response(
        '{"source": "discord", "product_area": "d1", "sentiment": "negative", '
        '"urgency": "high", "body_text": "D1 queries are slow", "tags": ["performance"]}'
    )
    return client


def converse_response(text: str) -> dict:
    """Build a Bedrock converse response with a single text block."""
    return {
        "output": {"message": {"role": "assistant", "content": [{"text": text}]}},
        "stopReason": "end_turn",
    }


@pytest.fixture
def make_converse_response():
    """Factory for Bedrock converse responses."""
    return converse_response
