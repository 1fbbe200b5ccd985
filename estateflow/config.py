"""Configuration constants for EstateFlow"""

import os
from dataclasses import dataclass
from typing import Optional

SERVICE_NAME = "estateflow-ai"
VERSION = "1.0.0"

# Retry configuration
MAX_RETRIES = 3
BASE_DELAY_MS = 1000
ATTEMPT_TIMEOUT = 30.0  # Seconds per attempt, independent of request options

# Health checks
HEALTH_CHECK_TIMEOUT = 5.0  # Seconds
HEALTH_POLL_INTERVAL = 30.0  # Seconds
SLOW_SERVICE_MS = 5000

# Scraping provider
FIRECRAWL_ENDPOINT = "https://api.firecrawl.dev/v1/scrape"
SCRAPE_TIMEOUT = 30.0
MIN_MARKDOWN_LENGTH = 100
MAX_PROPERTY_IMAGES = 50

# LLM provider
OPENAI_MODEL = "gpt-4o"
OPENAI_TEMPERATURE = 0.7
OPENAI_MAX_TOKENS = 1500
MAX_GENERATED_FEATURES = 8

# Server
DEFAULT_APP_URL = "http://localhost:8000"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

# Endpoints polled by the service-status aggregation
MONITORED_SERVICES = [
    {
        "name": "primary-api",
        "endpoint": "/api/generate",
        "method": "HEAD",
        "description": "Primary content generation API",
    },
    {
        "name": "fallback-api",
        "endpoint": "/api/fallback",
        "method": "HEAD",
        "description": "Fallback content generation API",
    },
    {
        "name": "health-api",
        "endpoint": "/api/health",
        "method": "HEAD",
        "description": "Service health check endpoint",
    },
    {
        "name": "ai-api",
        "endpoint": "/api/health/ai",
        "method": "HEAD",
        "description": "AI provider configuration",
    },
    {
        "name": "scraping-api",
        "endpoint": "/api/health/scraping",
        "method": "HEAD",
        "description": "Web scraping provider",
    },
]


@dataclass(frozen=True)
class ServiceHealthConfig:
    """Resilience settings shared by the retry, logging and monitoring paths"""

    max_retries: int = MAX_RETRIES
    base_timeout: int = 30000  # ms
    timeout_increment: int = 10000  # ms per retry
    enable_logging: bool = True
    enable_monitoring: bool = True


DEFAULT_SERVICE_CONFIG = ServiceHealthConfig()


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment"""

    openai_api_key: Optional[str] = None
    firecrawl_api_key: Optional[str] = None
    app_url: str = DEFAULT_APP_URL
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            firecrawl_api_key=os.environ.get("FIRECRAWL_API_KEY") or None,
            app_url=os.environ.get("ESTATEFLOW_APP_URL", DEFAULT_APP_URL).rstrip("/"),
            environment=os.environ.get("ESTATEFLOW_ENV", "development"),
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"
