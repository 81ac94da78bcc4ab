"""Tests for the NormalizationService."""

import json
from unittest.mock import Mock

import pytest

from models.feedback import FeedbackSource, ProductArea, RawFeedbackInput, Urgency
from services.errors import DependencyFailure, UpstreamParseError
from services.normalization_service import (
    SYSTEM_PROMPT,
    NormalizationService,
    parse_model_json,
    strip_code_fences,
)


class TestStripCodeFences:
    """Tests for strip_code_fences."""

    @pytest.mark.parametrize(
        "text",
        [
            '{"a": 1}',
            '```json\n{"a": 1}\n```',
            '```\n{"a": 1}\n```',
            '```{"a": 1}```',
            '  ```JSON\n{"a": 1}\n```  ',
        ],
    )
    def test_strips_optional_fence(self, text):
        assert strip_code_fences(text) == '{"a": 1}'

    def test_leaves_inner_backticks(self):
        text = '{"body_text": "use `wrangler dev`"}'
        assert strip_code_fences(text) == text


class TestParseModelJson:
    """Tests for parse_model_json."""

    def test_parses_fenced_object(self):
        assert parse_model_json('```json\n{"source": "email"}\n```') == {
            "source": "email"
        }

    def test_invalid_json_raises(self):
        with pytest.raises(UpstreamParseError) as exc_info:
            parse_model_json("Sure! Here is the JSON you asked for")
        assert exc_info.value.raw_text == "Sure! Here is the JSON you asked for"

    def test_non_object_json_raises(self):
        with pytest.raises(UpstreamParseError):
            parse_model_json('["discord", "d1"]')


class TestNormalizationService:
    """Tests for NormalizationService.normalize."""

    def test_normalize_sends_one_request(self, mock_bedrock_client):
        service = NormalizationService(bedrock_client=mock_bedrock_client, model_id="m")
        raw = RawFeedbackInput(source="discord", content="D1 queries are slow")

        feedback = service.normalize(raw)

        assert mock_bedrock_client.converse.call_count == 1
        kwargs = mock_bedrock_client.converse.call_args.kwargs
        assert kwargs["modelId"] == "m"
        assert kwargs["system"] == [{"text": SYSTEM_PROMPT}]
        user_text = kwargs["messages"][0]["content"][0]["text"]
        assert '"content": "D1 queries are slow"' in user_text

        assert feedback.source == FeedbackSource.DISCORD
        assert feedback.product_area == ProductArea.D1
        assert feedback.urgency == Urgency.HIGH
        assert feedback.id  # Generated when the model omits it

    def test_prompt_lists_closed_sets(self):
        assert "discord, github, support, twitter, email" in SYSTEM_PROMPT
        assert "low, medium, high, p1" in SYSTEM_PROMPT
        assert '"other"' in SYSTEM_PROMPT

    def test_normalize_accepts_plain_dict(self, mock_bedrock_client):
        service = NormalizationService(bedrock_client=mock_bedrock_client)
        service.normalize({"text": "hi", "extra": {"nested": True}})

        user_text = mock_bedrock_client.converse.call_args.kwargs["messages"][0][
            "content"
        ][0]["text"]
        payload = json.loads(user_text.split("\n\n", 1)[1])
        assert payload == {"text": "hi", "extra": {"nested": True}}

    def test_fenced_model_output_is_parsed(self, make_converse_response):
        client = Mock()
        client.converse.return_value = make_converse_response(
            '```json\n{"source": "twitter", "sentiment": "positive"}\n```'
        )
        feedback = NormalizationService(bedrock_client=client).normalize({})
        assert feedback.source == FeedbackSource.TWITTER

    def test_out_of_range_output_is_corrected(self, make_converse_response):
        client = Mock()
        client.converse.return_value = make_converse_response(
            '{"source": "myspace", "product_area": "spaceships"}'
        )
        feedback = NormalizationService(bedrock_client=client).normalize({})
        assert feedback.source == FeedbackSource.EMAIL
        assert feedback.product_area == ProductArea.OTHER

    def test_unparseable_output_fails_ingestion(self, make_converse_response):
        client = Mock()
        client.converse.return_value = make_converse_response("I cannot do that.")
        with pytest.raises(UpstreamParseError):
            NormalizationService(bedrock_client=client).normalize({})

    def test_response_without_text_fails(self):
        client = Mock()
        client.converse.return_value = {"output": {"message": {"content": []}}}
        with pytest.raises(UpstreamParseError):
            NormalizationService(bedrock_client=client).normalize({})

    def test_bedrock_error_is_dependency_failure(self):
        client = Mock()
        client.converse.side_effect = RuntimeError("throttled")
        with pytest.raises(DependencyFailure):
            NormalizationService(bedrock_client=client).normalize({})
