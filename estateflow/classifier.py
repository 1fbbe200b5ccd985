"""Error classification and user-facing guidance"""

from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .models import ErrorCategory, ErrorType, Severity

T = TypeVar("T")

SCRAPING_PHRASES = (
    "Web scraping service unavailable",
    "Unable to scrape",
    "Real estate sites often block automated access",
)
SERVICE_PHRASES = (
    "Service Unavailable",
    "temporarily unavailable",
    "quota",
    "billing",
)
AI_PHRASES = ("OpenAI", "AI service")

# Exception names that mean "the attempt was cancelled by its timeout"
ABORT_ERROR_NAMES = frozenset(
    {
        "AbortError",
        "TimeoutError",
        "TimeoutException",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
        "PoolTimeout",
    }
)
# Exception names raised by the transport when the connection itself fails
NETWORK_ERROR_NAMES = frozenset(
    {
        "TypeError",
        "TransportError",
        "NetworkError",
        "ConnectError",
        "ReadError",
        "WriteError",
        "RemoteProtocolError",
    }
)

Rule = Tuple[Callable[[ErrorCategory], bool], T]

GENERIC_USER_MESSAGE = (
    "AI content generation service is temporarily unavailable. Please paste your "
    "property description manually below, or try again in a few minutes."
)


def categorize_error(message: str, name: Optional[str] = None) -> ErrorCategory:
    """
    Map an error message and optional exception name to category flags.

    All checks are case-sensitive substring tests. Flags are computed
    independently, so more than one may be set.
    """
    return ErrorCategory(
        is_scraping_error=any(p in message for p in SCRAPING_PHRASES),
        is_timeout_error="timeout" in message or name in ABORT_ERROR_NAMES,
        is_service_error=any(p in message for p in SERVICE_PHRASES),
        is_ai_error=any(p in message for p in AI_PHRASES),
        is_network_error=name in NETWORK_ERROR_NAMES and "fetch" in message,
    )


def categorize_exception(error: BaseException) -> ErrorCategory:
    """Categorize a caught exception by its message and class name"""
    return categorize_error(str(error), type(error).__name__)


def _first_match(rules: Sequence[Rule], category: ErrorCategory, default: T) -> T:
    for predicate, result in rules:
        if predicate(category):
            return result
    return default


SEVERITY_RULES: Tuple[Rule, ...] = (
    (lambda c: c.is_service_error, Severity.HIGH),
    (lambda c: c.is_scraping_error, Severity.MEDIUM),
)

USER_MESSAGE_RULES: Tuple[Rule, ...] = (
    (
        lambda c: c.is_scraping_error,
        "The web scraping service is currently unavailable. This often happens when "
        "real estate websites block automated access. Please paste your property "
        "description manually below, or try again in a few minutes.",
    ),
    (
        lambda c: c.is_timeout_error,
        "The request timed out. The website might be slow or blocking access. Please "
        "paste your property description manually, or try a different URL.",
    ),
    (
        lambda c: c.is_service_error,
        "Service quota exceeded or temporarily unavailable. Please try again later or "
        "paste your property description manually.",
    ),
    (
        lambda c: c.is_ai_error,
        "AI service is temporarily unavailable. Please paste your property description "
        "manually, and we'll generate content using our fallback system.",
    ),
    (
        lambda c: c.is_network_error,
        "Network connection issue. Please check your internet connection and try "
        "again, or paste your property description manually.",
    ),
)

RETRY_ADVICE_RULES: Tuple[Rule, ...] = (
    (
        lambda c: c.is_scraping_error,
        "Scraping errors are typically not retryable. Try manual input instead.",
    ),
    (
        lambda c: c.is_timeout_error,
        "Timeout errors may be retryable. Check your connection and try again.",
    ),
    (
        lambda c: c.is_service_error,
        "Service errors are often temporary. Retry in a few minutes.",
    ),
    (
        lambda c: c.is_ai_error,
        "AI service errors may require quota check or API key verification.",
    ),
    (
        lambda c: c.is_network_error,
        "Network errors are usually retryable once connection is restored.",
    ),
)

ERROR_TYPE_RULES: Tuple[Rule, ...] = (
    (lambda c: c.is_scraping_error, ErrorType.SCRAPING_ERROR),
    (lambda c: c.is_timeout_error, ErrorType.TIMEOUT_ERROR),
    (lambda c: c.is_service_error, ErrorType.SERVICE_ERROR),
    (lambda c: c.is_ai_error, ErrorType.AI_SERVICE_ERROR),
    (lambda c: c.is_network_error, ErrorType.NETWORK_ERROR),
)

NEXT_STEPS_RULES: Tuple[Rule, ...] = (
    (
        lambda c: c.is_scraping_error,
        (
            "Try manual input instead of URL scraping",
            "Check if the website allows automated access",
            "Try again in a few minutes",
        ),
    ),
    (
        lambda c: c.is_timeout_error,
        (
            "Check your internet connection",
            "Try again with a shorter timeout",
            "Contact support if issue persists",
        ),
    ),
    (
        lambda c: c.is_service_error,
        (
            "Check service status page",
            "Try again in a few minutes",
            "Use fallback content generation",
        ),
    ),
    (
        lambda c: c.is_ai_error,
        (
            "Check AI service quota",
            "Verify API key configuration",
            "Contact support for quota issues",
        ),
    ),
    (
        lambda c: c.is_network_error,
        (
            "Check internet connection",
            "Try refreshing the page",
            "Check firewall settings",
        ),
    ),
)


def error_severity(category: ErrorCategory) -> Severity:
    return _first_match(SEVERITY_RULES, category, Severity.LOW)


def user_friendly_message(category: ErrorCategory) -> str:
    return _first_match(USER_MESSAGE_RULES, category, GENERIC_USER_MESSAGE)


def retry_advice(category: ErrorCategory) -> str:
    return _first_match(
        RETRY_ADVICE_RULES, category, "Unknown error type. Manual retry recommended."
    )


def error_type(category: ErrorCategory) -> ErrorType:
    return _first_match(ERROR_TYPE_RULES, category, ErrorType.UNKNOWN_ERROR)


def next_steps(category: ErrorCategory) -> List[str]:
    return list(_first_match(NEXT_STEPS_RULES, category, ()))


def is_retryable_category(category: ErrorCategory) -> bool:
    """AI errors on their own are not retryable"""
    return (
        category.is_scraping_error
        or category.is_timeout_error
        or category.is_service_error
        or category.is_network_error
    )
