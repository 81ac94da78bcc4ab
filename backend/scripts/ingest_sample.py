#!/usr/bin/env python3
"""
Ingest sample feedback through the API for manual testing.

Usage:
    python scripts/ingest_sample.py [API_URL]

Examples:
    python scripts/ingest_sample.py http://localhost:8000
"""

import argparse
import logging
from datetime import UTC, datetime

import requests

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

NOW = datetime.now(UTC).isoformat()

SAMPLE_FEEDBACK = [
    {
        "source": "discord",
        "source_url": "https://discord.com/channels/123/456/789",
        "author": "user_alice",
        "thread_id": "thread-001",
        "content": (
            "The Workers AI response times have been really slow lately. "
            "Sometimes it takes 5+ seconds to get a response from Llama. "
            "This is blocking our production deployment."
        ),
        "timestamp": NOW,
    },
    {
        "source": "github",
        "source_url": "https://github.com/cloudflare/workers-sdk/issues/1234",
        "author": "developer_bob",
        "title": "D1 query timeout on large result sets",
        "body": (
            "When running queries that return more than 1000 rows, D1 sometimes "
            "times out. We need better pagination support or higher limits for "
            "batch operations."
        ),
        "created_at": NOW,
    },
    {
        "source": "support",
        "source_url": "https://support.cloudflare.com/ticket/12345",
        "author": "enterprise_customer",
        "message": (
            "We love R2! The S3 compatibility has made migration super smooth. "
            "Would be great to have better event notifications though."
        ),
    },
    {
        "source": "twitter",
        "source_url": "https://twitter.com/user/status/123456789",
        "author": "@cloudflare_fan",
        "text": (
            "Just tried the new AI Gateway and it's amazing! The caching feature "
            "alone saved us 40% on API costs."
        ),
    },
    {
        "source": "email",
        "author": "feedback@example.com",
        "content": (
            "The billing dashboard is confusing. I can't figure out how to see my "
            "Workers usage breakdown vs R2 vs D1. Please add better cost attribution."
        ),
    },
    {
        "source": "discord",
        "source_url": "https://discord.com/channels/123/456/999",
        "author": "user_charlie",
        "thread_id": "thread-002",
        "content": (
            "URGENT: Our auth service using Workers is returning 500 errors after "
            "the latest update. This is a P1 for us - affecting all user logins!"
        ),
        "timestamp": NOW,
    },
]


def ingest_samples(api_url: str) -> int:
    """POST every sample to /ingest. Returns the number of failures."""
    logger.info(f"Ingesting {len(SAMPLE_FEEDBACK)} sample feedback items to {api_url}")
    failures = 0

    for i, feedback in enumerate(SAMPLE_FEEDBACK, start=1):
        logger.info(f"[{i}/{len(SAMPLE_FEEDBACK)}] Ingesting from {feedback['source']}...")
        try:
            response = requests.post(f"{api_url}/ingest", json=feedback, timeout=60)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"  Failed: {e}")
            failures += 1
            continue

        result = response.json()
        normalized = result.get("normalized", {})
        logger.info(f"  ID: {result['id']}")
        logger.info(
            f"     Sentiment: {normalized.get('sentiment')}, "
            f"Urgency: {normalized.get('urgency')}, "
            f"Area: {normalized.get('product_area')}"
        )

    logger.info("Done. Try the query endpoints:")
    logger.info(
        f"  curl -X POST {api_url}/ask -H 'Content-Type: application/json' "
        """-d '{"query": "What are the main issues with Workers AI?"}'"""
    )
    logger.info(
        f"  curl -X POST {api_url}/digest -H 'Content-Type: application/json' -d '{{}}'"
    )
    return failures


def main():
    parser = argparse.ArgumentParser(description="Ingest sample feedback")
    parser.add_argument("api_url", nargs="?", default="http://localhost:8000")
    args = parser.parse_args()

    failures = ingest_samples(args.api_url.rstrip("/"))
    raise SystemExit(1 if failures else 0)


if __name__ == "__main__":
    main()
