"""Feedback normalization using AWS Bedrock."""

import json
import logging
import re
from typing import Any

import boto3

from models.feedback import (
    Feedback,
    FeedbackSource,
    ProductArea,
    RawFeedbackInput,
    Sentiment,
    Urgency,
)
from services.errors import DependencyFailure, UpstreamParseError
from services.feedback_validator import validate_feedback

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "us.anthropic.claude-sonnet-4-20250514-v1:0"


def _choices(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


SYSTEM_PROMPT = f"""You are a feedback normalizer. Given raw feedback data, extract and normalize it into the following JSON structure. Output ONLY valid JSON, no explanation.

Required fields:
- id: Use the provided id or generate a UUID-like string
- created_at: ISO 8601 timestamp (use the provided timestamp or created_at; current time if neither is provided)
- source: One of: {_choices(FeedbackSource)}
- source_url: Original URL if available, otherwise null
- product_area: One of: {_choices(ProductArea)}
- title: A short summary headline (max 100 chars)
- author: Username or identifier if available
- thread_id: Thread/issue ID if available
- body_text: The main feedback text, cleaned and concatenated
- sentiment: One of: {_choices(Sentiment)}
- urgency: One of: {_choices(Urgency)}
- tags: Array of relevant tags like: feature-request, bug, docs, performance, security
- confidence: Object with product_area, sentiment, urgency scores (0-1)

Keep any id, source_url, author, thread_id and title that are already provided.
Analyze the content to determine sentiment, urgency, and product area. Be conservative - use "other" for product_area if uncertain."""

# Leading ``` or ```json (any language tag) and trailing ```
_FENCE_OPEN = re.compile(r"^```[\w-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")


def strip_code_fences(text: str) -> str:
    """Remove an optional markdown code fence wrapped around text."""
    stripped = text.strip()
    stripped = _FENCE_OPEN.sub("", stripped, count=1)
    stripped = _FENCE_CLOSE.sub("", stripped, count=1)
    return stripped.strip()


def parse_model_json(text: str) -> dict[str, Any]:
    """Parse the model's reply as a JSON object.

    Raises:
        UpstreamParseError: If the text is not a JSON object
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise UpstreamParseError(
            f"Model returned invalid JSON: {e.msg}", raw_text=text
        ) from e

    if not isinstance(parsed, dict):
        raise UpstreamParseError(
            f"Model returned JSON {type(parsed).__name__}, expected object",
            raw_text=text,
        )
    return parsed


class NormalizationService:
    """Turns raw, arbitrarily-shaped feedback into canonical Feedback."""

    def __init__(self, bedrock_client=None, model_id: str = DEFAULT_MODEL_ID):
        """Initialize the normalization service.

        Args:
            bedrock_client: boto3 bedrock-runtime client (created if omitted)
            model_id: Bedrock model used for normalization
        """
        self.bedrock = bedrock_client or boto3.client(
            "bedrock-runtime", region_name="us-west-2"
        )
        self.model_id = model_id

    def normalize(self, raw: RawFeedbackInput | dict[str, Any]) -> Feedback:
        """Normalize raw feedback with one model call.

        Args:
            raw: Raw feedback as submitted

        Returns:
            Canonical Feedback record

        Raises:
            DependencyFailure: If the Bedrock call fails
            UpstreamParseError: If the model output cannot be parsed
        """
        payload = raw.to_payload() if isinstance(raw, RawFeedbackInput) else raw
        user_prompt = (
            "Normalize this raw feedback into the canonical JSON format:\n\n"
            f"{json.dumps(payload, indent=2, default=str)}"
        )

        try:
            response = self.bedrock.converse(
                modelId=self.model_id,
                system=[{"text": SYSTEM_PROMPT}],
                messages=[{"role": "user", "content": [{"text": user_prompt}]}],
                inferenceConfig={"maxTokens": 1024, "temperature": 0.0},
            )
        except Exception as e:
            raise DependencyFailure(f"Normalization model call failed: {e}") from e

        response_text = self._extract_text(response)
        parsed = parse_model_json(response_text)
        feedback = validate_feedback(parsed)

        logger.info(
            "Normalized feedback %s: source=%s area=%s sentiment=%s urgency=%s",
            feedback.id,
            feedback.source.value,
            feedback.product_area.value,
            feedback.sentiment.value,
            feedback.urgency.value,
        )
        return feedback

    def _extract_text(self, response: dict[str, Any]) -> str:
        """Join the text blocks of a converse response."""
        content_blocks = response.get("output", {}).get("message", {}).get(
            "content", []
        )
        text_parts = [block["text"] for block in content_blocks if "text" in block]
        if not text_parts:
            raise UpstreamParseError("Unexpected model response format: no text")
        return "\n".join(text_parts)
