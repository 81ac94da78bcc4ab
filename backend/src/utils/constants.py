"""Shared constants for the Feedback Analyzer backend."""

# Object store key namespace: feedback/dt=<date>/source=<source>/<id>.json
FEEDBACK_KEY_PREFIX = "feedback"

# Discord rejects messages over 2000 chars; leave headroom for markdown
DISCORD_MESSAGE_LIMIT = 1900
ELLIPSIS = "..."

# Semantic search
ASK_MAX_RESULTS = 5
DIGEST_MAX_RESULTS = 10
CITATION_EXCERPT_CHARS = 200

# Rendering
SOURCES_SHOWN = 3
SOURCE_EXCERPT_CHARS = 100
KEY_THEMES_CHARS = 800
HIGH_URGENCY_EXCERPT_CHARS = 100
DIGEST_HIGH_URGENCY_SAMPLES = 3

# Relational aggregates
URGENCY_TREND_DAYS = 7
