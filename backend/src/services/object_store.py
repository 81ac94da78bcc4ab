"""S3 storage for canonical feedback documents.

Objects are partitioned by day and source so a single day (or a single
channel on that day) can be listed by prefix without scanning:

    feedback/dt=YYYY-MM-DD/source=<source>/<id>.json
"""

import json
import logging
from datetime import datetime

from botocore.exceptions import ClientError

from models.feedback import Feedback
from utils.constants import FEEDBACK_KEY_PREFIX

logger = logging.getLogger(__name__)


def feedback_date(created_at: str) -> str:
    """Calendar day (YYYY-MM-DD) of an ISO 8601 timestamp."""
    try:
        return datetime.fromisoformat(created_at.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return created_at.split("T")[0]


def get_object_key(feedback: Feedback) -> str:
    """Object store key for a feedback record."""
    date = feedback_date(feedback.created_at)
    return (
        f"{FEEDBACK_KEY_PREFIX}/dt={date}/source={feedback.source.value}/"
        f"{feedback.id}.json"
    )


class FeedbackObjectStore:
    """Reads and writes feedback documents in an S3 bucket."""

    def __init__(self, s3_client, bucket_name: str):
        self.s3 = s3_client
        self.bucket_name = bucket_name

    def store(self, feedback: Feedback) -> str:
        """Write the canonical document and return its key."""
        key = get_object_key(feedback)
        self.s3.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=json.dumps(feedback.to_document(), indent=2).encode("utf-8"),
            ContentType="application/json",
            Metadata={
                "source": feedback.source.value,
                "product_area": feedback.product_area.value,
                "sentiment": feedback.sentiment.value,
                "urgency": feedback.urgency.value,
                "created_at": feedback.created_at,
            },
        )
        return key

    def get(self, key: str) -> Feedback | None:
        """Read a feedback document, or None if the key does not exist."""
        try:
            response = self.s3.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                return None
            raise
        return Feedback.model_validate_json(response["Body"].read())

    def list_keys_for_date(self, date: str, source: str | None = None) -> list[str]:
        """List document keys for a day, optionally for one source."""
        prefix = f"{FEEDBACK_KEY_PREFIX}/dt={date}/"
        if source:
            prefix += f"source={source}/"

        keys = []
        paginator = self.s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))

        logger.debug("Listed %d feedback objects under %s", len(keys), prefix)
        return keys
