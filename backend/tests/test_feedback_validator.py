"""Tests for the total feedback validator."""

import uuid
from datetime import UTC, datetime

import pytest

from models.feedback import FeedbackSource, ProductArea, Sentiment, Urgency
from services.feedback_validator import (
    DEFAULT_PRODUCT_AREA,
    DEFAULT_SENTIMENT,
    DEFAULT_SOURCE,
    DEFAULT_URGENCY,
    validate_feedback,
)


class TestValidateFeedback:
    """Test cases for validate_feedback."""

    def test_valid_candidate_is_kept(self):
        feedback = validate_feedback(
            {
                "id": "abc",
                "created_at": "2026-01-09T10:00:00Z",
                "source": "github",
                "source_url": "https://github.com/org/repo/issues/1",
                "product_area": "workers-ai",
                "title": "Slow inference",
                "author": "bob",
                "thread_id": "1",
                "body_text": "Inference is slow",
                "sentiment": "negative",
                "urgency": "p1",
                "tags": ["performance"],
                "confidence": {"product_area": 0.9, "sentiment": 0.7, "urgency": 0.5},
            }
        )

        assert feedback.id == "abc"
        assert feedback.created_at == "2026-01-09T10:00:00+00:00"
        assert feedback.source == FeedbackSource.GITHUB
        assert feedback.product_area == ProductArea.WORKERS_AI
        assert feedback.sentiment == Sentiment.NEGATIVE
        assert feedback.urgency == Urgency.P1
        assert feedback.tags == ["performance"]
        assert feedback.confidence.urgency == 0.5

    def test_missing_id_and_timestamp_are_synthesized(self):
        before = datetime.now(UTC)
        feedback = validate_feedback({"body_text": "hello"})

        uuid.UUID(feedback.id)  # Raises if not a UUID
        assert datetime.fromisoformat(feedback.created_at) >= before

    @pytest.mark.parametrize(
        "created_at",
        ["01/15/2026 10:00", "yesterday", "", 1736935200, None],
    )
    def test_unparseable_timestamp_uses_current_time(self, created_at):
        before = datetime.now(UTC)
        feedback = validate_feedback({"body_text": "x", "created_at": created_at})

        assert datetime.fromisoformat(feedback.created_at) >= before

    @pytest.mark.parametrize(
        "created_at,expected",
        [
            ("2026-01-15T10:00:00.250Z", "2026-01-15T10:00:00.250000+00:00"),
            (" 2026-01-15T10:00:00-05:00 ", "2026-01-15T10:00:00-05:00"),
            ("2026-01-15", "2026-01-15T00:00:00"),
        ],
    )
    def test_timestamp_is_normalized(self, created_at, expected):
        assert validate_feedback({"created_at": created_at}).created_at == expected

    def test_id_path_separators_are_escaped(self):
        feedback = validate_feedback({"id": "../tenant\\a/b"})

        assert "/" not in feedback.id
        assert "\\" not in feedback.id
        assert feedback.id == "..%2Ftenant%5Ca%2Fb"

    def test_blank_id_is_replaced(self):
        uuid.UUID(validate_feedback({"id": "   "}).id)

    def test_generated_ids_are_unique(self):
        assert validate_feedback({}).id != validate_feedback({}).id

    def test_numeric_id_is_stringified(self):
        assert validate_feedback({"id": 42}).id == "42"

    def test_out_of_range_enums_fall_back(self):
        feedback = validate_feedback(
            {
                "source": "slack",
                "product_area": "kubernetes",
                "sentiment": "furious",
                "urgency": "critical",
            }
        )

        assert feedback.source == DEFAULT_SOURCE == FeedbackSource.EMAIL
        assert feedback.product_area == DEFAULT_PRODUCT_AREA == ProductArea.OTHER
        assert feedback.sentiment == DEFAULT_SENTIMENT == Sentiment.NEUTRAL
        assert feedback.urgency == DEFAULT_URGENCY == Urgency.MEDIUM

    def test_enum_values_are_case_insensitive(self):
        feedback = validate_feedback({"source": " Discord ", "urgency": "P1"})
        assert feedback.source == FeedbackSource.DISCORD
        assert feedback.urgency == Urgency.P1

    @pytest.mark.parametrize(
        "candidate",
        [
            None,
            [],
            "not an object",
            42,
            {"source": None, "product_area": 3, "sentiment": [], "urgency": {}},
            {"source": True, "tags": "bug", "confidence": "high"},
        ],
    )
    def test_total_coercion_never_emits_illegal_values(self, candidate):
        feedback = validate_feedback(candidate)

        assert feedback.source in FeedbackSource
        assert feedback.product_area in ProductArea
        assert feedback.sentiment in Sentiment
        assert feedback.urgency in Urgency
        assert isinstance(feedback.tags, list)

    def test_tags_drop_non_strings(self):
        feedback = validate_feedback({"tags": ["bug", 1, None, "docs", {"x": 1}]})
        assert feedback.tags == ["bug", "docs"]

    def test_tags_not_a_list_become_empty(self):
        assert validate_feedback({"tags": "bug, docs"}).tags == []

    def test_body_text_uses_first_non_empty_candidate(self):
        feedback = validate_feedback(
            {"body_text": "", "content": "  ", "body": "from body", "text": "from text"}
        )
        assert feedback.body_text == "from body"

    def test_body_text_defaults_to_empty_string(self):
        assert validate_feedback({"title": "only a title"}).body_text == ""

    def test_confidence_copies_only_numeric_scores(self):
        feedback = validate_feedback(
            {"confidence": {"product_area": 0.8, "sentiment": "high", "urgency": True}}
        )

        assert feedback.confidence.product_area == 0.8
        assert feedback.confidence.sentiment is None
        assert feedback.confidence.urgency is None

    def test_confidence_scores_are_clamped(self):
        feedback = validate_feedback({"confidence": {"sentiment": 1.7, "urgency": -2}})
        assert feedback.confidence.sentiment == 1.0
        assert feedback.confidence.urgency == 0.0

    def test_non_mapping_confidence_is_omitted(self):
        assert validate_feedback({"confidence": [0.5]}).confidence is None

    def test_long_title_is_truncated(self):
        feedback = validate_feedback({"title": "t" * 250})
        assert len(feedback.title) == 100

    def test_non_string_optionals_are_dropped(self):
        feedback = validate_feedback({"source_url": 5, "author": ["a"], "title": None})
        assert feedback.source_url is None
        assert feedback.author is None
        assert feedback.title is None
