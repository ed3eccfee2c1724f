from typing import Optional


class TrendingSearchException(Exception):
    """Base exception for all trending-search errors."""
    pass

class SearchFailure(TrendingSearchException):
    """
    Raised when the whole search cannot be completed (bad query, upstream
    Search API error, network failure). No partial results are produced.
    """
    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)

class InvalidWindowError(SearchFailure):
    """Raised when the requested date range is empty after clamping."""
    pass

class RateLimitExceededException(TrendingSearchException):
    """Raised when the GitHub REST API signals request throttling."""
    def __init__(
        self,
        reset_at: Optional[str] = None,
        retry_after: Optional[int] = None,
        message: str = "GitHub API rate limit exceeded.",
    ):
        self.reset_at = reset_at
        self.retry_after = retry_after
        suffix = f" Resets at: {reset_at}" if reset_at else ""
        super().__init__(f"{message}{suffix}")

class ConfigurationError(TrendingSearchException):
    """Raised when settings loaded from the environment are invalid."""
    pass
