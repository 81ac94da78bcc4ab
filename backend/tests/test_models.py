"""Tests for data models."""

import json

import pytest
from pydantic import ValidationError

from models.feedback import (
    Feedback,
    FeedbackConfidence,
    FeedbackSource,
    ProductArea,
    RawFeedbackInput,
    Sentiment,
    Urgency,
    feedback_to_row,
    row_to_feedback,
)
from models.interaction import (
    EPHEMERAL_FLAG,
    Interaction,
    InteractionResponseType,
    create_deferred_response,
    create_ephemeral_response,
    create_pong_response,
    get_string_option,
)


class TestFeedbackEnums:
    """Test cases for the closed value sets."""

    def test_closed_set_sizes(self):
        assert len(list(FeedbackSource)) == 5
        assert len(list(ProductArea)) == 8
        assert len(list(Sentiment)) == 3
        assert len(list(Urgency)) == 4

    def test_product_area_has_escape_value(self):
        assert ProductArea.OTHER == "other"
        assert ProductArea("workers-ai") == ProductArea.WORKERS_AI

    def test_urgency_ordering(self):
        """Urgency ranks low < medium < high < p1."""
        ranks = [u.rank for u in (Urgency.LOW, Urgency.MEDIUM, Urgency.HIGH, Urgency.P1)]
        assert ranks == sorted(ranks)
        assert Urgency.P1.rank > Urgency.HIGH.rank


class TestFeedbackModel:
    """Test cases for the canonical Feedback model."""

    def test_feedback_is_immutable(self, sample_feedback):
        with pytest.raises(ValidationError):
            sample_feedback.source = FeedbackSource.EMAIL

    def test_title_length_limit(self, sample_feedback):
        with pytest.raises(ValidationError):
            sample_feedback.model_validate(
                {**sample_feedback.model_dump(), "title": "x" * 101}
            )

    def test_confidence_range(self):
        with pytest.raises(ValidationError):
            FeedbackConfidence(sentiment=1.5)

    def test_document_omits_missing_optionals(self, sample_feedback):
        feedback = sample_feedback.model_copy(update={"source_url": None})
        document = feedback.to_document()
        assert "source_url" not in document
        assert document["source"] == "discord"
        assert document["confidence"]["product_area"] == 0.9


class TestFeedbackRow:
    """Test cases for the flattened relational row."""

    def test_row_round_trip_preserves_tags_and_confidence(self, sample_feedback):
        row = feedback_to_row(sample_feedback, "feedback/key.json")
        restored = row_to_feedback(row)

        assert set(restored.tags) == set(sample_feedback.tags)
        assert restored.confidence == sample_feedback.confidence
        assert restored.r2_key == "feedback/key.json"
        assert restored.source == FeedbackSource.DISCORD

    def test_row_encodes_json_fields(self, sample_feedback):
        row = feedback_to_row(sample_feedback, "k")
        assert json.loads(row.tags_json) == ["performance", "bug"]
        assert json.loads(row.confidence_json)["urgency"] == 0.6

    def test_empty_tags_and_missing_confidence_are_null(self, make_feedback):
        row = feedback_to_row(make_feedback(tags=[], confidence=None), "k")
        assert row.tags_json is None
        assert row.confidence_json is None

        restored = row_to_feedback(row)
        assert restored.tags == []
        assert restored.confidence is None

    def test_optional_fields_become_nullable(self, make_feedback):
        row = feedback_to_row(make_feedback(author=None, thread_id=None), "k")
        assert row.author is None
        assert row.thread_id is None


class TestRawFeedbackInput:
    """Test cases for the loosely-typed raw input."""

    def test_keeps_extra_keys(self):
        raw = RawFeedbackInput.model_validate(
            {"source": "github", "body": "Broken", "labels": ["bug"], "stars": 3}
        )
        payload = raw.to_payload()
        assert payload["labels"] == ["bug"]
        assert payload["stars"] == 3
        assert "content" not in payload

    def test_keeps_non_string_values_as_sent(self):
        raw = RawFeedbackInput.model_validate(
            {
                "id": 42,
                "author": {"login": "octocat"},
                "content": ["line one", "line two"],
            }
        )
        payload = raw.to_payload()
        assert payload["id"] == 42
        assert payload["author"] == {"login": "octocat"}
        assert payload["content"] == ["line one", "line two"]


class TestInteractionModels:
    """Test cases for Discord interaction helpers."""

    def test_response_builders(self):
        assert create_pong_response().to_payload() == {"type": 1}
        assert create_deferred_response().to_payload() == {"type": 5}
        assert create_ephemeral_response("only you").to_payload() == {
            "type": InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE.value,
            "data": {"content": "only you", "flags": EPHEMERAL_FLAG},
        }

    def test_get_string_option(self):
        interaction = Interaction.model_validate(
            {
                "type": 2,
                "data": {
                    "name": "ASK",
                    "options": [{"name": "query", "type": 3, "value": "why?"}],
                },
            }
        )
        assert interaction.command_name == "ask"
        assert get_string_option(interaction, "query") == "why?"
        assert get_string_option(interaction, "date") is None

    def test_get_string_option_without_data(self):
        interaction = Interaction.model_validate({"type": 1})
        assert interaction.command_name is None
        assert get_string_option(interaction, "query") is None
