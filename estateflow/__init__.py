"""EstateFlow
Real estate marketing content generation with resilient service calls
"""

__version__ = "1.0.0"

from .classifier import (
    categorize_error,
    categorize_exception,
    error_severity,
    is_retryable_category,
    next_steps,
    retry_advice,
    user_friendly_message,
)
from .client import EstateFlowClient, GenerationOutcome
from .config import DEFAULT_SERVICE_CONFIG, ServiceHealthConfig, Settings
from .exceptions import (
    AIServiceError,
    EstateFlowError,
    MaxRetriesExceededError,
    MissingInputError,
    RequestFailedError,
    ScrapingError,
)
from .fallback import generate_fallback_content
from .health import (
    HealthMonitor,
    ServiceStatusTracker,
    check_service_health,
    summarize_system_health,
)
from .models import ContentBundle, ErrorCategory, HealthState, Severity
from .retry import calculate_backoff_delay, retry_with_backoff

__all__ = [
    "__version__",
    "EstateFlowClient",
    "GenerationOutcome",
    "HealthMonitor",
    "ServiceStatusTracker",
    "ServiceHealthConfig",
    "DEFAULT_SERVICE_CONFIG",
    "Settings",
    "EstateFlowError",
    "RequestFailedError",
    "MaxRetriesExceededError",
    "ScrapingError",
    "AIServiceError",
    "MissingInputError",
    "ContentBundle",
    "ErrorCategory",
    "HealthState",
    "Severity",
    "categorize_error",
    "categorize_exception",
    "error_severity",
    "user_friendly_message",
    "retry_advice",
    "next_steps",
    "is_retryable_category",
    "calculate_backoff_delay",
    "retry_with_backoff",
    "generate_fallback_content",
    "check_service_health",
    "summarize_system_health",
]
