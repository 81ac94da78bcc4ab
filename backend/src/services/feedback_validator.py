"""Total coercion of untrusted model output into a canonical Feedback record.

``validate_feedback`` never raises. Anything missing or outside a closed
value set is replaced by a defined default so that a sloppy model response
degrades precision instead of blocking ingestion.
"""

import math
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

from models.feedback import (
    Feedback,
    FeedbackConfidence,
    FeedbackSource,
    ProductArea,
    Sentiment,
    Urgency,
)

E = TypeVar("E", bound=Enum)

DEFAULT_SOURCE = FeedbackSource.EMAIL
DEFAULT_PRODUCT_AREA = ProductArea.OTHER
DEFAULT_SENTIMENT = Sentiment.NEUTRAL
DEFAULT_URGENCY = Urgency.MEDIUM

MAX_TITLE_LENGTH = 100

# Candidate fields for body_text, in order of preference
BODY_TEXT_FIELDS = ("body_text", "content", "body", "text")

CONFIDENCE_FIELDS = ("product_area", "sentiment", "urgency")

# Ids become object key segments, so separators must not survive
ID_ESCAPES = str.maketrans({"/": "%2F", "\\": "%5C"})


def validate_feedback(candidate: Any) -> Feedback:
    """Coerce a parsed model response into a Feedback record.

    Args:
        candidate: Parsed JSON value from the model (normally a dict)

    Returns:
        Feedback whose enum fields always hold legal values
    """
    data: Mapping[str, Any] = candidate if isinstance(candidate, Mapping) else {}

    title = _optional_str(data.get("title"))
    if title is not None:
        title = title[:MAX_TITLE_LENGTH]

    return Feedback(
        id=_coerce_id(data.get("id")),
        created_at=_coerce_timestamp(data.get("created_at")),
        source=_coerce_enum(data.get("source"), FeedbackSource, DEFAULT_SOURCE),
        source_url=_optional_str(data.get("source_url")),
        product_area=_coerce_enum(
            data.get("product_area"), ProductArea, DEFAULT_PRODUCT_AREA
        ),
        title=title,
        author=_optional_str(data.get("author")),
        thread_id=_scalar_str(data.get("thread_id")),
        body_text=_first_text(data, BODY_TEXT_FIELDS),
        sentiment=_coerce_enum(data.get("sentiment"), Sentiment, DEFAULT_SENTIMENT),
        urgency=_coerce_enum(data.get("urgency"), Urgency, DEFAULT_URGENCY),
        tags=_coerce_tags(data.get("tags")),
        confidence=_coerce_confidence(data.get("confidence")),
    )


def _coerce_enum(value: Any, enum_cls: type[E], default: E) -> E:
    """Map value onto enum_cls, or return default when it is not a member."""
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return default
    return default


def _coerce_id(value: Any) -> str:
    """Caller or model id, or a fresh UUID. Path separators are escaped."""
    feedback_id = _scalar_str(value)
    if feedback_id is None or not feedback_id.strip():
        return str(uuid.uuid4())
    return feedback_id.strip().translate(ID_ESCAPES)


def _coerce_timestamp(value: Any) -> str:
    """Normalized ISO 8601 timestamp, or the current UTC time if unparseable."""
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            return parsed.isoformat()
        except ValueError:
            pass
    return datetime.now(UTC).isoformat()


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _scalar_str(value: Any) -> str | None:
    """Like _optional_str but also accepts numeric identifiers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return _optional_str(value)


def _first_text(data: Mapping[str, Any], fields: tuple[str, ...]) -> str:
    for field in fields:
        value = data.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def _coerce_tags(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    tags = []
    for tag in value:
        if isinstance(tag, str) and tag not in tags:
            tags.append(tag)
    return tags


def _coerce_confidence(value: Any) -> FeedbackConfidence | None:
    if not isinstance(value, Mapping):
        return None

    scores = {}
    for field in CONFIDENCE_FIELDS:
        score = value.get(field)
        # bool is an int subclass but never a probability
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            continue
        if math.isnan(score):
            continue
        scores[field] = min(max(float(score), 0.0), 1.0)

    return FeedbackConfidence(**scores)
