"""Lambda handlers for Feedback Analyzer."""

from .api_handler import api_handler
from .interaction_worker import interaction_worker_handler

__all__ = [
    "api_handler",
    "interaction_worker_handler",
]
