import httpx

from estateflow.classifier import (
    GENERIC_USER_MESSAGE,
    categorize_error,
    categorize_exception,
    error_severity,
    error_type,
    is_retryable_category,
    next_steps,
    retry_advice,
    user_friendly_message,
)
from estateflow.models import ErrorCategory, ErrorType, Severity


def test_blocked_access_is_scraping_only():
    category = categorize_error("Real estate sites often block automated access")
    assert category == ErrorCategory(is_scraping_error=True)
    assert error_severity(category) is Severity.MEDIUM


def test_quota_and_billing_is_service_error_with_high_severity():
    category = categorize_error("quota exceeded, billing issue")
    assert category.is_service_error
    assert error_severity(category) is Severity.HIGH


def test_service_error_dominates_scraping_in_severity():
    category = categorize_error("Unable to scrape: quota exceeded")
    # Flags are independent, severity picks the service branch
    assert category.is_scraping_error and category.is_service_error
    assert error_severity(category) is Severity.HIGH
    # Message and advice check scraping first
    assert user_friendly_message(category).startswith("The web scraping service")
    assert retry_advice(category).startswith("Scraping errors")


def test_matching_is_case_sensitive():
    assert categorize_error("TIMEOUT while loading").is_unknown
    assert categorize_error("openai failed").is_unknown
    assert categorize_error("request timeout").is_timeout_error


def test_timeout_from_abort_name():
    category = categorize_error("The operation was aborted", "AbortError")
    assert category.is_timeout_error
    assert categorize_error("", "ReadTimeout").is_timeout_error


def test_network_error_requires_name_and_fetch():
    assert categorize_error("Failed to fetch", "TypeError").is_network_error
    assert not categorize_error("Failed to fetch").is_network_error
    assert not categorize_error("connection refused", "ConnectError").is_network_error


def test_categorize_exception_uses_class_name():
    category = categorize_exception(httpx.ConnectError("fetch failed"))
    assert category.is_network_error
    assert categorize_exception(TimeoutError()).is_timeout_error


def test_unknown_error_defaults():
    category = categorize_error("something odd happened")
    assert category.is_unknown
    assert error_severity(category) is Severity.LOW
    assert user_friendly_message(category) == GENERIC_USER_MESSAGE
    assert retry_advice(category) == "Unknown error type. Manual retry recommended."
    assert error_type(category) is ErrorType.UNKNOWN_ERROR
    assert next_steps(category) == []
    assert not is_retryable_category(category)


def test_ai_error_alone_is_not_retryable():
    category = categorize_error("OpenAI request failed")
    assert category == ErrorCategory(is_ai_error=True)
    assert not is_retryable_category(category)
    assert error_type(category) is ErrorType.AI_SERVICE_ERROR


def test_retryable_categories():
    for flag in ("is_scraping_error", "is_timeout_error", "is_service_error", "is_network_error"):
        assert is_retryable_category(ErrorCategory(**{flag: True})), flag
    assert is_retryable_category(ErrorCategory(is_ai_error=True, is_timeout_error=True))


def test_helpers_follow_flag_order():
    category = ErrorCategory(is_timeout_error=True, is_ai_error=True, is_network_error=True)
    assert error_type(category) is ErrorType.TIMEOUT_ERROR
    assert user_friendly_message(category).startswith("The request timed out")
    assert next_steps(category) == [
        "Check your internet connection",
        "Try again with a shorter timeout",
        "Contact support if issue persists",
    ]


def test_network_branch_messages():
    category = ErrorCategory(is_network_error=True)
    assert user_friendly_message(category).startswith("Network connection issue")
    assert retry_advice(category).startswith("Network errors are usually retryable")
    assert next_steps(category)[0] == "Check internet connection"
    assert error_severity(category) is Severity.LOW
