"""Ingestion pipeline: normalize, then persist to both stores."""

import logging
from dataclasses import dataclass
from typing import Any

from models.feedback import Feedback, RawFeedbackInput
from services.errors import DependencyFailure
from services.feedback_repository import FeedbackRepository
from services.normalization_service import NormalizationService
from services.object_store import FeedbackObjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of persisting one feedback record."""

    feedback: Feedback
    r2_key: str
    analytics_stored: bool


class IngestionService:
    """Writes canonical feedback to the object store and the relational store.

    There is no transaction spanning the two stores. The object store is
    written first; if the relational upsert then fails the document stays in
    place (it is still searchable) and the result reports
    ``analytics_stored=False``.
    """

    def __init__(
        self,
        normalization_service: NormalizationService,
        object_store: FeedbackObjectStore,
        repository: FeedbackRepository,
    ):
        self.normalization_service = normalization_service
        self.object_store = object_store
        self.repository = repository

    def ingest(self, raw: RawFeedbackInput | dict[str, Any]) -> IngestResult:
        """Normalize raw feedback and persist it.

        Raises:
            UpstreamParseError: If the model output cannot be parsed
        """
        feedback = self.normalization_service.normalize(raw)
        return self.persist(feedback)

    def persist(self, feedback: Feedback) -> IngestResult:
        """Persist a canonical record to both stores, object store first."""
        try:
            r2_key = self.object_store.store(feedback)
        except Exception as e:
            raise DependencyFailure(
                f"Object store write failed for {feedback.id}: {e}"
            ) from e

        analytics_stored = True
        try:
            self.repository.upsert(feedback, r2_key)
        except Exception as e:
            # Object store copy is kept for later reconciliation
            logger.error(
                "Relational upsert failed for %s (object stored at %s): %s",
                feedback.id,
                r2_key,
                e,
            )
            analytics_stored = False

        logger.info("Ingested feedback: %s -> %s", feedback.id, r2_key)
        return IngestResult(
            feedback=feedback, r2_key=r2_key, analytics_stored=analytics_stored
        )
