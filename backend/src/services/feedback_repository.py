"""Relational storage and deterministic aggregates for feedback."""

import logging
from datetime import UTC, date, datetime, timedelta

from sqlalchemy import (
    Column,
    Index,
    MetaData,
    String,
    Table,
    Text,
    delete,
    func,
    insert,
    select,
)
from sqlalchemy.engine import Engine

from models.feedback import (
    HIGH_URGENCIES,
    Feedback,
    FeedbackRow,
    StoredFeedback,
    feedback_to_row,
    row_to_feedback,
)
from models.search import HighUrgencySample, SourceSentimentStat, UrgencyCount

logger = logging.getLogger(__name__)

metadata = MetaData()

# created_at is ISO 8601 text, so lexical comparison orders by time
feedback_table = Table(
    "feedback",
    metadata,
    Column("id", String, primary_key=True),
    Column("created_at", String, nullable=False),
    Column("source", String, nullable=False),
    Column("source_url", Text),
    Column("product_area", String, nullable=False),
    Column("title", Text),
    Column("author", Text),
    Column("thread_id", Text),
    Column("body_text", Text, nullable=False),
    Column("sentiment", String, nullable=False),
    Column("urgency", String, nullable=False),
    Column("tags_json", Text),
    Column("confidence_json", Text),
    Column("r2_key", Text, nullable=False),
    Index("idx_feedback_created_at", "created_at"),
    Index("idx_feedback_urgency_time", "urgency", "created_at"),
)

Index(
    "idx_feedback_source_product_time",
    feedback_table.c.source,
    feedback_table.c.product_area,
    feedback_table.c.created_at.desc(),
)


def _next_day(day: str) -> str:
    return (date.fromisoformat(day) + timedelta(days=1)).isoformat()


class FeedbackRepository:
    """Repository for the ``feedback`` table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_schema(self) -> None:
        """Create the table and its indexes if they do not exist."""
        metadata.create_all(self.engine)

    def upsert(self, feedback: Feedback, r2_key: str) -> None:
        """Insert a feedback row, replacing any existing row with the same id."""
        row = feedback_to_row(feedback, r2_key)
        with self.engine.begin() as conn:
            conn.execute(delete(feedback_table).where(feedback_table.c.id == row.id))
            conn.execute(insert(feedback_table).values(**row.model_dump()))

    def get(self, feedback_id: str) -> StoredFeedback | None:
        """Get a feedback record by id."""
        with self.engine.connect() as conn:
            result = conn.execute(
                select(feedback_table).where(feedback_table.c.id == feedback_id)
            ).mappings().first()
        if result is None:
            return None
        return row_to_feedback(FeedbackRow(**result))

    def get_daily_stats(self, day: str) -> list[SourceSentimentStat]:
        """Counts grouped by source, product area and sentiment for one day."""
        count = func.count().label("count")
        stmt = (
            select(
                feedback_table.c.source,
                feedback_table.c.product_area,
                feedback_table.c.sentiment,
                count,
            )
            .where(feedback_table.c.created_at >= day)
            .where(feedback_table.c.created_at < _next_day(day))
            .group_by(
                feedback_table.c.source,
                feedback_table.c.product_area,
                feedback_table.c.sentiment,
            )
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [SourceSentimentStat(**row) for row in rows]

    def get_urgency_trends(
        self, days: int = 7, today: date | None = None
    ) -> list[UrgencyCount]:
        """Counts grouped by urgency over the trailing ``days`` days."""
        today = today or datetime.now(UTC).date()
        since = (today - timedelta(days=days)).isoformat()
        stmt = (
            select(feedback_table.c.urgency, func.count().label("count"))
            .where(feedback_table.c.created_at >= since)
            .group_by(feedback_table.c.urgency)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [UrgencyCount(**row) for row in rows]

    def get_feedback_count(self, since: str) -> int:
        """Total feedback created at or after ``since``."""
        stmt = select(func.count()).select_from(feedback_table).where(
            feedback_table.c.created_at >= since
        )
        with self.engine.connect() as conn:
            return conn.execute(stmt).scalar_one() or 0

    def get_high_urgency_sample(self, limit: int = 5) -> list[HighUrgencySample]:
        """Random sample of high and p1 urgency items."""
        stmt = (
            select(feedback_table.c.body_text, feedback_table.c.source_url)
            .where(feedback_table.c.urgency.in_([u.value for u in HIGH_URGENCIES]))
            .order_by(func.random())
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [HighUrgencySample(**row) for row in rows]
