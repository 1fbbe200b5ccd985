"""Structured service-error logging"""

import os
import random
import string
import time
from typing import Any, Dict, Optional

import orjson
from loguru import logger

from .classifier import (
    error_severity,
    error_type,
    is_retryable_category,
    next_steps,
    retry_advice,
    user_friendly_message,
)
from .config import DEFAULT_SERVICE_CONFIG, SERVICE_NAME, VERSION, ServiceHealthConfig
from .models import ErrorCategory, ServiceErrorInfo

_BASE36 = string.digits + string.ascii_lowercase


def generate_session_id() -> str:
    """Session id for correlating one caller's error reports"""
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def build_error_entry(
    info: ServiceErrorInfo,
    category: ErrorCategory,
    config: ServiceHealthConfig = DEFAULT_SERVICE_CONFIG,
) -> Dict[str, Any]:
    return {
        "timestamp": info.timestamp,
        "level": error_severity(category).value,
        "service": SERVICE_NAME,
        "operation": info.input_type,
        "error": {
            "message": info.error,
            "category": category.to_dict(),
            "type": error_type(category).value,
            "is_retryable": is_retryable_category(category),
        },
        "request": {
            "url": info.url,
            "input_type": info.input_type,
            "input_length": info.input_length,
            "user_agent": info.user_agent,
        },
        "service_health": {
            "response_time": info.response_time,
            "retry_count": info.retry_count,
            "max_retries": config.max_retries,
            "timeout": config.base_timeout,
        },
        "context": {
            "environment": os.environ.get("ESTATEFLOW_ENV", "development"),
            "version": VERSION,
            "session_id": generate_session_id(),
        },
        "recommendations": {
            "retry_advice": retry_advice(category),
            "user_message": user_friendly_message(category),
            "next_steps": next_steps(category),
        },
    }


def send_to_monitoring(entry: Dict[str, Any]) -> None:
    """Forward an error entry to the monitoring sink as one JSON line"""
    line = orjson.dumps(entry).decode()
    logger.bind(monitoring=True, entry=line).info("[MONITORING] {}", line)


def log_service_error(
    info: ServiceErrorInfo,
    category: ErrorCategory,
    config: ServiceHealthConfig = DEFAULT_SERVICE_CONFIG,
) -> Optional[Dict[str, Any]]:
    """
    Log a categorized service error.

    Returns the structured entry, or None when logging is disabled.
    """
    if not config.enable_logging:
        return None

    entry = build_error_entry(info, category, config)
    logger.bind(**entry["error"]).error(
        f"Service error [{entry['level']}] {entry['error']['type']} during "
        f"{info.input_type}: {info.error}"
    )
    logger.debug(f"   Retry advice: {entry['recommendations']['retry_advice']}")

    if config.enable_monitoring:
        send_to_monitoring(entry)
    return entry
