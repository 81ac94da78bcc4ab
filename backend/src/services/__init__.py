"""Services for Feedback Analyzer backend."""

from .feedback_repository import FeedbackRepository
from .ingestion_service import IngestionService
from .insights_service import FeedbackInsightsService
from .interaction_service import InteractionService
from .normalization_service import NormalizationService
from .object_store import FeedbackObjectStore
from .search_service import SearchService

__all__ = [
    "FeedbackRepository",
    "IngestionService",
    "FeedbackInsightsService",
    "InteractionService",
    "NormalizationService",
    "FeedbackObjectStore",
    "SearchService",
]
