"""Custom exception classes for EstateFlow"""

from typing import Any, Dict, Optional


class EstateFlowError(Exception):
    """Base exception for EstateFlow errors"""

    pass


class RequestFailedError(EstateFlowError):
    """Raised when an outbound request fails with a non-retryable or final response"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(message)


class MaxRetriesExceededError(EstateFlowError):
    """Raised when every attempt was used without a result"""

    def __init__(self, message: str = "Max retries exceeded"):
        super().__init__(message)


class ScrapingError(EstateFlowError):
    """Raised when the scraping provider cannot return usable listing content"""

    pass


class AIServiceError(EstateFlowError):
    """Raised when the LLM provider fails in a way the caller must see"""

    pass


class MissingInputError(EstateFlowError):
    """Raised when fallback generation is requested without any input text"""

    def __init__(self, message: str = "Input text or property data is required"):
        super().__init__(message)
