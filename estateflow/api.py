"""FastAPI application exposing content generation, fallback and health endpoints"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple, Union
from urllib.parse import urlparse

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from openai import AsyncOpenAI
from pydantic import BaseModel

from .config import VERSION, Settings
from .exceptions import MissingInputError
from .fallback import fallback_input_text, generate_fallback_content
from .generator import ContentGenerator, build_openai_client
from .health import collect_service_status
from .models import VALID_MODULES
from .scraper import FirecrawlScraper, detect_platform, listing_from_text

# (markers, status code, user message, service status); first match wins
FAILURE_RULES: Tuple[Tuple[Tuple[str, ...], int, str, str], ...] = (
    (
        ("503", "Service Unavailable", "temporarily unavailable"),
        503,
        "Service temporarily unavailable. This usually happens when real estate "
        "websites block automated access or the scraping service is overloaded.",
        "unavailable",
    ),
    (
        ("429", "rate limit"),
        429,
        "Too many requests. The service is rate limited. Please try again in a few minutes.",
        "rate_limited",
    ),
    (
        ("401", "authentication"),
        503,
        "Service authentication failed. Please contact support.",
        "auth_failed",
    ),
    (
        ("timeout",),
        504,
        "Request timeout. The website might be slow or blocking access.",
        "timeout",
    ),
    (
        ("quota", "billing"),
        429,
        "Service quota exceeded. Please try again later.",
        "quota_exceeded",
    ),
    (
        ("Firecrawl", "scrape"),
        503,
        "Web scraping service unavailable. Real estate sites often block automated access.",
        "scraping_failed",
    ),
    (
        ("OpenAI", "AI"),
        503,
        "AI content generation service temporarily unavailable.",
        "ai_unavailable",
    ),
)


class GenerateRequest(BaseModel):
    url: Optional[str] = None
    manualText: Optional[str] = None
    modules: Union[List[str], str] = ["all"]


class FallbackRequest(BaseModel):
    input: Optional[Any] = None
    propertyData: Optional[Any] = None
    type: str = "social"
    modules: List[str] = ["social"]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


def classify_generation_failure(message: str) -> Tuple[int, str, str]:
    """HTTP status, user message and service status for a failed generation"""
    for markers, status_code, user_message, service_status in FAILURE_RULES:
        if any(marker in message for marker in markers):
            return status_code, user_message, service_status
    return 500, message, "unknown"


def _error(status_code: int, error: str) -> JSONResponse:
    return JSONResponse({"error": error}, status_code=status_code)


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    openai_client: Optional[AsyncOpenAI] = None,
) -> FastAPI:
    """
    Build the API with explicit dependencies.

    Args:
        settings: Runtime settings (read from the environment when omitted)
        http_client: Client for the scraping provider and status probes
        openai_client: LLM client; built from settings when omitted and a key exists
    """
    settings = settings or Settings.from_env()
    owns_client = http_client is None
    http_client = http_client or httpx.AsyncClient()
    if openai_client is None:
        openai_client = build_openai_client(settings.openai_api_key)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"EstateFlow API starting ({settings.environment})")
        yield
        if owns_client:
            await http_client.aclose()
        logger.info("EstateFlow API stopped")

    app = FastAPI(title="EstateFlow API", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.scraper = FirecrawlScraper(http_client, settings.firecrawl_api_key)
    app.state.generator = ContentGenerator(openai_client)

    @app.head("/api/generate")
    async def generate_head():
        return Response(status_code=200)

    @app.post("/api/generate")
    async def generate(req: GenerateRequest, request: Request):
        modules = req.modules if isinstance(req.modules, list) else [req.modules]
        invalid = [m for m in modules if m not in VALID_MODULES]
        if invalid:
            return _error(
                400,
                f"Invalid modules: {', '.join(invalid)}. "
                f"Valid modules: {', '.join(VALID_MODULES)}",
            )
        if not req.url:
            return _error(400, "URL is required")

        manual_text = (req.manualText or "").strip()
        if not manual_text and req.url != "manual" and not _is_valid_url(req.url):
            return _error(400, "Invalid URL format")

        state = request.app.state
        try:
            if manual_text:
                listing = listing_from_text(req.manualText, req.url)
            else:
                listing = await state.scraper.scrape(req.url)
            content = await state.generator.generate(listing, modules)
        except Exception as e:
            message = str(e) or "An unexpected error occurred"
            status_code, user_message, service_status = classify_generation_failure(message)
            logger.error(f"Generation failed ({service_status}): {message}")
            return JSONResponse(
                {
                    "error": user_message,
                    "serviceStatus": service_status,
                    "details": message if settings.is_development else None,
                    "timestamp": _timestamp(),
                    "fallbackAvailable": True,
                },
                status_code=status_code,
            )

        return {
            "success": True,
            "data": content.to_dict(),
            "modules": modules,
            "scrapedData": {
                "title": content.property_title,
                "description": content.property_summary,
                "image": listing.image,
                "platform": detect_platform(req.url),
                "isFallback": listing.is_fallback,
                "contentLength": len(listing.content),
                "isManualText": bool(manual_text),
                "images": listing.images,
                "url": req.url,
            },
        }

    @app.post("/api/fallback")
    async def fallback(req: FallbackRequest):
        try:
            text = fallback_input_text(req.input, req.propertyData)
        except MissingInputError as e:
            return _error(400, str(e))

        try:
            content = generate_fallback_content(text, req.type)
        except Exception as e:
            logger.exception(f"Fallback API error: {e}")
            return JSONResponse(
                {"error": "Fallback content generation failed", "details": str(e)},
                status_code=500,
            )

        return {
            "success": True,
            "data": content.to_dict(),
            "modules": req.modules,
            "source": "fallback",
            "timestamp": _timestamp(),
            "message": "Content generated using fallback system",
        }

    @app.api_route("/api/fallback", methods=["GET", "HEAD"])
    async def fallback_status():
        return {
            "status": "healthy",
            "service": "fallback-content",
            "timestamp": _timestamp(),
            "capabilities": ["social-content", "listing-content", "basic-formatting"],
        }

    @app.api_route("/api/health", methods=["GET", "HEAD"])
    async def health():
        return {
            "status": "healthy",
            "timestamp": _timestamp(),
            "services": {"api": "healthy", "fallback": "healthy"},
            "version": VERSION,
        }

    @app.api_route("/api/health/ai", methods=["GET", "HEAD"])
    async def health_ai(request: Request):
        configured = request.app.state.generator.is_available
        return JSONResponse(
            {
                "status": "healthy" if configured else "unhealthy",
                "timestamp": _timestamp(),
                "service": "ai",
                "details": {
                    "openai_configured": configured,
                    "message": (
                        "AI service is properly configured"
                        if configured
                        else "OpenAI API key not configured"
                    ),
                },
            },
            status_code=200 if configured else 503,
        )

    @app.api_route("/api/health/scraping", methods=["GET", "HEAD"])
    async def health_scraping(request: Request):
        configured = request.app.state.scraper.is_configured
        # Manual input is always available, so scraping never reports unhealthy
        return {
            "status": "healthy",
            "timestamp": _timestamp(),
            "service": "scraping",
            "details": {
                "firecrawl_configured": configured,
                "has_fallback": True,
                "message": (
                    "Web scraping service is configured"
                    if configured
                    else "Using manual input fallback (no API key required)"
                ),
            },
        }

    @app.get("/api/service-status")
    async def service_status(request: Request):
        try:
            report = await collect_service_status(request.app.state.http_client, settings.app_url)
        except Exception as e:
            logger.error(f"Service status monitoring error: {e}")
            return JSONResponse(
                {
                    "error": "Failed to check service status",
                    "details": str(e),
                    "timestamp": _timestamp(),
                },
                status_code=500,
            )
        report["environment"] = settings.environment
        return report

    return app
