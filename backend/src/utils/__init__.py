"""Utility helpers for Feedback Analyzer."""

from .formatting import excerpt, truncate

__all__ = ["excerpt", "truncate"]
