"""Answers and daily digests built from semantic search plus SQL aggregates."""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime
from typing import TypeVar

from models.search import DigestReport, SearchResult
from services.errors import InputError
from services.feedback_repository import FeedbackRepository
from services.search_service import SearchService
from utils.constants import (
    DIGEST_HIGH_URGENCY_SAMPLES,
    HIGH_URGENCY_EXCERPT_CHARS,
    KEY_THEMES_CHARS,
    SOURCE_EXCERPT_CHARS,
    SOURCES_SHOWN,
    URGENCY_TREND_DAYS,
)
from utils.formatting import excerpt, truncate

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_FEEDBACK_MESSAGE = "No feedback recorded for this date."


def today_utc() -> str:
    return datetime.now(UTC).date().isoformat()


def parse_digest_date(value: str | None) -> str:
    """Validate a YYYY-MM-DD digest date, defaulting to today (UTC).

    Raises:
        InputError: If the value is not a calendar date
    """
    if value is None or not value.strip():
        return today_utc()
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        raise InputError(f"Invalid date '{value}', expected YYYY-MM-DD")


def format_answer(result: SearchResult) -> str:
    """Render a search result for Discord: answer plus top sources."""
    content = result.answer

    if result.citations:
        content += "\n\n**Sources:**"
        for i, citation in enumerate(result.citations[:SOURCES_SHOWN], start=1):
            if citation.text:
                content += f"\n{i}. {excerpt(citation.text, SOURCE_EXCERPT_CHARS)}"

    return truncate(content)


def render_digest(report: DigestReport) -> str:
    """Render a digest report for Discord."""
    header = f"**📊 Feedback Digest for {report.date}**\n\n"
    if report.total_feedback == 0:
        return header + NO_FEEDBACK_MESSAGE
    return truncate(header + _compose_digest_body(report))


def _compose_digest_body(report: DigestReport) -> str:
    body = f"**Total feedback:** {report.total_feedback}\n\n"

    if report.stats_by_source_sentiment:
        body += "**Breakdown by source & sentiment:**\n"
        grouped: dict[str, dict[str, int]] = {}
        for stat in report.stats_by_source_sentiment:
            counts = grouped.setdefault(stat.source, {"pos": 0, "neu": 0, "neg": 0})
            if stat.sentiment == "positive":
                counts["pos"] += stat.count
            elif stat.sentiment == "negative":
                counts["neg"] += stat.count
            else:
                counts["neu"] += stat.count
        for source, counts in grouped.items():
            body += (
                f"• {source}: 👍{counts['pos']} 😐{counts['neu']} 👎{counts['neg']}\n"
            )
        body += "\n"

    body += "**Key Themes:**\n"
    body += report.ai_summary[:KEY_THEMES_CHARS]

    if report.high_urgency_samples:
        body += "\n\n**🔴 High-Urgency Items:**\n"
        for item in report.high_urgency_samples:
            body += f'• "{excerpt(item.body_text, HIGH_URGENCY_EXCERPT_CHARS)}"\n'

    return body


class FeedbackInsightsService:
    """Combines the knowledge base search with relational aggregates."""

    def __init__(self, search_service: SearchService, repository: FeedbackRepository):
        self.search_service = search_service
        self.repository = repository

    def ask(self, query: str) -> tuple[SearchResult, str]:
        """Answer a free-text question.

        Returns:
            Tuple of (search result, Discord-ready answer text)
        """
        result = self.search_service.query(query)
        return result, format_answer(result)

    def build_digest(self, day: str | None = None) -> DigestReport:
        """Collect the search summary and aggregates for one day.

        The search call and the four reads are independent and run in
        parallel.
        """
        day = parse_digest_date(day)

        with ThreadPoolExecutor(max_workers=5) as executor:
            search_future = executor.submit(self.search_service.generate_digest, day)
            stats_future = executor.submit(
                self._read, "daily stats", self.repository.get_daily_stats, [], day
            )
            trends_future = executor.submit(
                self._read,
                "urgency trends",
                self.repository.get_urgency_trends,
                [],
                URGENCY_TREND_DAYS,
            )
            count_future = executor.submit(
                self._read, "feedback count", self.repository.get_feedback_count, 0, day
            )
            sample_future = executor.submit(
                self._read,
                "high urgency sample",
                self.repository.get_high_urgency_sample,
                [],
                DIGEST_HIGH_URGENCY_SAMPLES,
            )

            search_result = search_future.result()
            report = DigestReport(
                date=day,
                total_feedback=count_future.result(),
                stats_by_source_sentiment=stats_future.result(),
                urgency_trends=trends_future.result(),
                high_urgency_samples=sample_future.result(),
                ai_summary=search_result.answer,
                citations=search_result.citations,
            )

        logger.info(
            "Built digest for %s: %d feedback items", day, report.total_feedback
        )
        return report

    def digest_message(self, day: str | None = None) -> str:
        """Build and render the digest for Discord."""
        return render_digest(self.build_digest(day))

    def _read(self, name: str, reader: Callable[..., T], default: T, *args) -> T:
        """Run one aggregate read, falling back to ``default`` on failure."""
        try:
            return reader(*args)
        except Exception as e:
            logger.error("Digest %s read failed: %s", name, e)
            return default
