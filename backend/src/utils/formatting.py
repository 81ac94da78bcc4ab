"""Text helpers for chat-platform rendering."""

from .constants import DISCORD_MESSAGE_LIMIT, ELLIPSIS


def truncate(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    """Hard-truncate text to ``limit`` chars, ending with an ellipsis if cut.

    The returned string is never longer than ``limit``.
    """
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def excerpt(text: str, length: int) -> str:
    """First ``length`` chars of text, always followed by an ellipsis."""
    return f"{text[:length]}{ELLIPSIS}"
