"""Client for the EstateFlow content API"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

import httpx
from loguru import logger

from .classifier import categorize_exception, error_severity, user_friendly_message
from .config import BASE_DELAY_MS, DEFAULT_APP_URL, DEFAULT_SERVICE_CONFIG, ServiceHealthConfig
from .fallback import generate_fallback_content
from .models import ContentBundle, ErrorCategory, ServiceErrorInfo, Severity
from .monitoring import log_service_error
from .retry import retry_with_backoff

USER_AGENT = "estateflow-client/1.0"


@dataclass
class GenerationOutcome:
    """Result of a content request as seen by the caller"""

    success: bool
    source: Optional[str] = None  # "ai" or "fallback"
    content: Optional[ContentBundle] = None
    response: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    category: Optional[ErrorCategory] = None
    severity: Optional[Severity] = None
    user_message: Optional[str] = None
    manual_input_required: bool = False
    retries: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "source": self.source}
        if self.content is not None:
            data["data"] = self.content.to_dict()
        if self.response.get("scrapedData"):
            data["scrapedData"] = self.response["scrapedData"]
        if not self.success:
            data.update(
                error=self.error,
                userMessage=self.user_message,
                severity=self.severity.value if self.severity else None,
                category=self.category.to_dict() if self.category else None,
                manualInputRequired=self.manual_input_required,
            )
        data["retries"] = self.retries
        return data


class EstateFlowClient:
    """
    Calls the content API with retries and turns failures into guidance.

    - Exponential backoff retry around /api/generate
    - Error categorization and structured error logging
    - Fallback content via /api/fallback, or locally if that fails too
    """

    def __init__(
        self,
        base_url: str = DEFAULT_APP_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        max_retries: Optional[int] = None,
        base_delay: int = BASE_DELAY_MS,
        config: ServiceHealthConfig = DEFAULT_SERVICE_CONFIG,
    ):
        self.base_url = base_url.rstrip("/")
        self.config = config
        self.max_retries = config.max_retries if max_retries is None else max_retries
        self.base_delay = base_delay
        self._owns_client = http_client is None
        # No transport timeout: each attempt is bounded by the retry executor
        self.http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=None,
        )

        logger.debug(f"EstateFlow client initialized for {self.base_url}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    def _failure(
        self,
        error: Exception,
        input_type: str,
        input_length: int,
        url: str,
        started: float,
        retries: int,
    ) -> GenerationOutcome:
        category = categorize_exception(error)
        message = str(error) or type(error).__name__
        info = ServiceErrorInfo.now(
            message,
            input_type=input_type,
            input_length=input_length,
            user_agent=USER_AGENT,
            url=url,
            response_time=round((time.monotonic() - started) * 1000, 1),
            retry_count=retries,
        )
        log_service_error(info, category, self.config)
        return GenerationOutcome(
            success=False,
            error=message,
            category=category,
            severity=error_severity(category),
            user_message=user_friendly_message(category),
            manual_input_required=True,
            retries=retries,
        )

    async def generate(
        self,
        url: str,
        manual_text: Optional[str] = None,
        modules: Sequence[str] = ("all",),
    ) -> GenerationOutcome:
        """Request AI content for a listing URL or pasted text"""
        retries = 0

        async def on_retry(attempt: int, error: Exception):
            nonlocal retries
            retries = attempt + 1

        payload: Dict[str, Any] = {"url": url, "modules": list(modules)}
        if manual_text:
            payload["manualText"] = manual_text

        started = time.monotonic()
        try:
            response = await retry_with_backoff(
                self.http_client,
                f"{self.base_url}/api/generate",
                method="POST",
                json=payload,
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                attempt_timeout=self.config.base_timeout / 1000,
                on_retry=on_retry,
            )
            body = response.json()
            content = ContentBundle.from_dict(body["data"])
        except Exception as e:
            logger.error(f"Content generation failed: {e}")
            input_type = "manual" if manual_text else "url"
            input_length = len(manual_text) if manual_text else len(url)
            return self._failure(e, input_type, input_length, url, started, retries)

        return GenerationOutcome(
            success=True,
            source="ai",
            content=content,
            response=body,
            retries=retries,
        )

    async def generate_fallback(self, text: str, kind: str = "social") -> GenerationOutcome:
        """
        Template content from the fallback endpoint.

        If the endpoint itself cannot be reached the same templates are
        rendered locally, so this never fails for non-empty input.
        """
        try:
            response = await self.http_client.post(
                f"{self.base_url}/api/fallback",
                json={"input": text, "type": kind, "modules": [kind]},
            )
            response.raise_for_status()
            body = response.json()
            content = ContentBundle.from_dict(body["data"])
        except Exception as e:
            logger.warning(f"Fallback endpoint unavailable ({e}), generating locally")
            content = generate_fallback_content(text, kind)
            body = {"success": True, "source": "fallback"}

        return GenerationOutcome(success=True, source="fallback", content=content, response=body)

    async def generate_with_fallback(
        self,
        url: str,
        manual_text: Optional[str] = None,
        modules: Sequence[str] = ("all",),
    ) -> GenerationOutcome:
        """
        AI content when possible, template content otherwise.

        Template content needs the pasted description; URL-only requests
        return the failed outcome so the caller can ask for manual input.
        """
        outcome = await self.generate(url, manual_text, modules)
        if outcome.success:
            return outcome

        if not manual_text:
            logger.warning("No property description to build fallback content from")
            return outcome

        text = manual_text
        kind = "listing" if "listing" in modules else "social"
        logger.info(f"Using fallback content: {outcome.user_message}")
        fallback = await self.generate_fallback(text, kind)
        fallback.error = outcome.error
        fallback.category = outcome.category
        fallback.severity = outcome.severity
        fallback.user_message = outcome.user_message
        fallback.retries = outcome.retries
        return fallback
