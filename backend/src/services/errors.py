"""Error types for the feedback pipeline."""


class FeedbackAnalyzerError(Exception):
    """Base error for the feedback pipeline."""

    pass


class InputError(FeedbackAnalyzerError):
    """A required request field is missing or malformed."""

    pass


class UpstreamParseError(FeedbackAnalyzerError):
    """The generative model returned output that is not a JSON object."""

    def __init__(self, message: str, raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text


class DependencyFailure(FeedbackAnalyzerError):
    """An external store or service call failed."""

    pass
