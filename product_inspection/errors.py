"""
Error types for the analysis pipeline.

Each error carries the HTTP status the entry point should answer with and
a user-facing message. Recoverable conditions (malformed model output,
cache write failures) are handled inside the pipeline and never raised.
"""


class AnalysisError(Exception):
    """Base class for failures surfaced to the caller."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {'error': self.message}


class InvalidUrlError(AnalysisError):
    """Missing, non-string or unparseable product URL."""

    status_code = 400


class QuotaExhaustedError(AnalysisError):
    """The LLM gateway reported exhausted credits (HTTP 402)."""

    status_code = 402


class RateLimitError(AnalysisError):
    """The LLM gateway rate-limited us (HTTP 429)."""

    status_code = 429


class OriginFetchError(AnalysisError):
    """The product page could not be fetched and no fallback recovered it."""

    status_code = 500


class AnalysisFailedError(AnalysisError):
    """Any other LLM gateway failure."""

    status_code = 500
