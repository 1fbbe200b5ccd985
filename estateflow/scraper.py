"""Listing scraper backed by the Firecrawl API"""

import re
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from .config import (
    FIRECRAWL_ENDPOINT,
    MAX_PROPERTY_IMAGES,
    MIN_MARKDOWN_LENGTH,
    SCRAPE_TIMEOUT,
)
from .exceptions import ScrapingError
from .models import ScrapedListing

REAL_ESTATE_PATTERNS = {
    "zillow": re.compile(r"zillow\.com"),
    "realtor": re.compile(r"realtor\.com"),
    "redfin": re.compile(r"redfin\.com"),
    "trulia": re.compile(r"trulia\.com"),
    "apartments": re.compile(r"apartments\.com"),
    "homes": re.compile(r"homes\.com"),
}

BLOCKED_CONTENT_MARKERS = ("Access Denied", "403 Forbidden", "blocked", "robot")

IMAGE_PATTERN = re.compile(r"!\[.*?\]\((.*?)\)")
NEGATIVE_IMAGE_KEYWORDS = (
    "logo", "icon", "svg", "gif", "data:image", "profile", "avatar",
    "google", "play", "app", "store", "apple", "android",
    "flag", "housing", "opportunity", "banner", "button", "footer", "social",
)
POSITIVE_IMAGE_KEYWORDS = ("photo", "img", "image", "media", "gallery", "static")


def detect_platform(url: str) -> str:
    for platform, pattern in REAL_ESTATE_PATTERNS.items():
        if pattern.search(url):
            return platform
    return "unknown"


def extract_title(markdown: str) -> str:
    """First level-one heading, or the first line that looks like a title"""
    for line in markdown.split("\n"):
        if line.startswith("# "):
            return line[2:].strip()
        trimmed = line.strip()
        if trimmed and 10 < len(trimmed) < 100 and not trimmed.startswith("!"):
            return trimmed
    return "Real Estate Listing"


def extract_description(markdown: str) -> str:
    """First meaningful paragraph, cut to 150 characters"""
    for line in markdown.split("\n"):
        trimmed = line.strip()
        if trimmed and not trimmed.startswith(("#", "!")) and len(trimmed) > 20:
            return trimmed[:150] + ("..." if len(trimmed) > 150 else "")
    return "Beautiful property with excellent features"


def filter_property_images(urls: List[str]) -> List[str]:
    """
    Keep likely property photos.

    Drops UI assets by keyword, tiny and inline images, ranks by photo-like
    keywords, removes duplicates (ignoring query strings) and caps the list.
    """
    candidates = []
    for url in urls:
        lowered = url.lower()
        if any(keyword in lowered for keyword in NEGATIVE_IMAGE_KEYWORDS):
            continue
        if len(url) < 15 or "base64" in lowered:
            continue
        if "//" in url and not url.startswith("http"):
            continue
        candidates.append(url)

    scored = sorted(
        candidates,
        key=lambda u: -sum(1 for k in POSITIVE_IMAGE_KEYWORDS if k in u.lower()),
    )

    seen = set()
    result = []
    for url in scored:
        base = url.split("?")[0].lower()
        if base in seen:
            continue
        seen.add(base)
        result.append(url)

    return result[:MAX_PROPERTY_IMAGES]


def extract_images(markdown: str) -> List[str]:
    raw = [match.strip() for match in IMAGE_PATTERN.findall(markdown)]
    return filter_property_images(raw)


def listing_from_text(text: str, url: str = "manual") -> ScrapedListing:
    """Listing built from text the user pasted instead of scraping"""
    return ScrapedListing(
        title=extract_title(text),
        description=extract_description(text),
        content=text,
        url=url,
    )


def _user_facing_scrape_error(message: str) -> str:
    lowered = message.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return (
            "The website is taking too long to respond (timeout). Please try a different "
            "property URL or paste the description manually."
        )
    if "403" in message or "blocked" in lowered:
        return (
            "This website is blocking access. Please try a different property URL or "
            "paste the description manually."
        )
    if "404" in message:
        return (
            "The property URL could not be found. Please check the URL and try again."
        )
    if "Network" in message or "fetch" in message:
        return (
            "Network error occurred. The Firecrawl service may be temporarily "
            "unavailable. Please try again or paste the description manually."
        )
    return "Unable to scrape the website. Please paste the property description manually."


def _status_error(status_code: int, body: str) -> str:
    if status_code == 503:
        return (
            "Firecrawl service unavailable (HTTP 503). The scraping service is "
            "temporarily down or rate limited."
        )
    if status_code == 429:
        return (
            "Firecrawl rate limit exceeded (HTTP 429). Too many requests, please try "
            "again later."
        )
    if status_code == 401:
        return "Firecrawl authentication failed (HTTP 401). Invalid API key configuration."
    if status_code >= 500:
        return (
            f"Firecrawl server error (HTTP {status_code}). The service is experiencing "
            "technical difficulties."
        )
    return f"Firecrawl API error: HTTP {status_code} - {body}"


class FirecrawlScraper:
    """
    Scrapes listing pages into markdown through Firecrawl.

    Every failure is raised as ScrapingError with a message that tells the
    user what to do next (usually: paste the description manually).
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str],
        endpoint: str = FIRECRAWL_ENDPOINT,
        timeout: float = SCRAPE_TIMEOUT,
    ):
        self.client = client
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _fetch_markdown(self, url: str) -> str:
        response = await self.client.post(
            self.endpoint,
            json={"url": url, "formats": ["markdown"]},
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key or ''}",
            },
            timeout=self.timeout,
        )

        if not response.is_success:
            logger.error(f"Firecrawl API error: HTTP {response.status_code}")
            raise ScrapingError(_status_error(response.status_code, response.text))

        data: Dict[str, Any] = response.json()
        if not data.get("success"):
            raise ScrapingError(
                f"Firecrawl scraping failed: {data.get('error') or 'Unknown error'}"
            )

        markdown = (data.get("data") or {}).get("markdown")
        if not markdown:
            raise ScrapingError("No markdown content returned from Firecrawl")
        if len(markdown) < MIN_MARKDOWN_LENGTH:
            raise ScrapingError("Insufficient content returned from Firecrawl")
        if any(marker in markdown for marker in BLOCKED_CONTENT_MARKERS):
            raise ScrapingError("Content blocked or access denied by target website")
        return markdown

    async def scrape(self, url: str) -> ScrapedListing:
        logger.info(f"🔍 Scraping {url} ({detect_platform(url)})")
        try:
            markdown = await self._fetch_markdown(url)
        except Exception as e:
            logger.error(f"❌ Firecrawl scraping error: {type(e).__name__}: {e}")
            raise ScrapingError(_user_facing_scrape_error(str(e) or type(e).__name__)) from e

        images = extract_images(markdown)
        listing = ScrapedListing(
            title=extract_title(markdown),
            description=extract_description(markdown),
            content=markdown,
            url=url,
            image=images[0] if images else "",
            images=images,
        )
        logger.success(f"✅ Scraped {len(markdown)} chars, {len(images)} images")
        return listing
