"""Marketing content generation with the OpenAI API"""

import json
from typing import Any, Dict, Optional, Sequence

from loguru import logger
from openai import AsyncOpenAI

from .config import (
    MAX_GENERATED_FEATURES,
    OPENAI_MAX_TOKENS,
    OPENAI_MODEL,
    OPENAI_TEMPERATURE,
)
from .exceptions import AIServiceError
from .fallback import listing_fallback_content
from .models import ContentBundle, ScrapedListing
from .scraper import detect_platform

SOCIAL_INSTRUCTIONS = """For SOCIAL MEDIA content (Instagram, LinkedIn, TikTok):
- 'instagram': A complete, catchy caption string with emojis and hashtags that will engage potential buyers and generate leads. Include property highlights, emotional appeal, and a clear call-to-action. Return as a single string.
- 'linkedin': A professional post string highlighting investment potential, neighborhood insights, and market trends. Position the agent as a market expert. Return as a single string.
- 'tiktok': A short, punchy video script string with Hook, Body, and Call to Action sections. Make it engaging and shareable. Return as a single string.

"""

LISTING_INSTRUCTIONS = """For LISTING AGENT content (MLS Description, Email Blast, Marketing Headline, Features):
- 'marketing_headline': A short, catchy marketing headline (max 10 words) that captures the property's main appeal and would grab attention in listings or advertisements. Make it compelling and benefit-focused.
- 'features': An array of strings containing the property's key features (e.g., ['3 Beds', '2 Baths', 'Pool', 'Garage', 'Updated Kitchen']). Extract these from the listing content and include only the most important features that buyers care about. Keep it to 6-8 key features maximum.
- 'mls_description': An official, professional MLS description that follows real estate industry standards, including key features, amenities, and property highlights in a formal tone.
- 'email_blast': A newsletter-style email campaign draft for real estate agents to send to their client database, with a subject line suggestion and a clear call-to-action.

"""

BASE_FIELDS_INSTRUCTIONS = """ALWAYS include these base fields:
- 'property_title': Extract and return the clean, professional title/name of the property (e.g., "Forma Miami Apartments", "Downtown Boston Condo"). Avoid raw markdown artifacts like "Skip to content".
- 'property_summary': A concise, 1-2 sentence summary of the property highlighting its key features and appeal.

IMPORTANT: Return all values as simple strings. Ignore navigation elements, loan application prompts, or other website artifacts.

Property Listing Content (Markdown):
"""

# Provider failures that are reported to the caller instead of degraded
SURFACED_ERRORS = (
    ("API key", "OpenAI API key is invalid or missing. Please check your configuration."),
    ("rate limit", "OpenAI rate limit exceeded. Please try again in a few moments."),
    ("timeout", "OpenAI service is taking too long to respond (timeout). Please try again."),
    ("insufficient_quota", "OpenAI API quota exceeded. Please check your account billing."),
)


def build_openai_client(api_key: Optional[str]) -> Optional[AsyncOpenAI]:
    """OpenAI client, or None when no key is configured"""
    if not api_key:
        logger.warning("OPENAI_API_KEY not set - AI generation disabled, using fallback content")
        return None
    return AsyncOpenAI(api_key=api_key)


def build_system_prompt(listing: ScrapedListing, modules: Sequence[str]) -> str:
    platform = detect_platform(listing.url)
    prompt = (
        "You are an expert Real Estate Social Media Manager with years of experience "
        "creating viral content for real estate agents.\n\n"
        f"You are analyzing a property listing from {platform}. The listing content is "
        "provided in Markdown format below.\n\n"
        "Your task is to:\n"
        "1. Extract key property details from the Markdown content (beds, baths, sqft, "
        "price, location, features, amenities)\n"
        "2. Generate a JSON response with the requested fields based on the modules "
        "parameter.\n\n"
    )
    if "all" in modules or "social" in modules:
        prompt += SOCIAL_INSTRUCTIONS
    if "all" in modules or "listing" in modules:
        prompt += LISTING_INSTRUCTIONS
    return prompt + BASE_FIELDS_INSTRUCTIONS + listing.content


def parse_generated_content(data: Dict[str, Any]) -> ContentBundle:
    """Validate an LLM JSON reply and coerce it into a ContentBundle"""
    required = ContentBundle.REQUIRED_TEXT_FIELDS + ("features",)
    missing = [name for name in required if not data.get(name)]
    if missing:
        raise ValueError(f"Invalid response format from OpenAI (missing {', '.join(missing)})")

    raw_features = data["features"] if isinstance(data["features"], list) else []
    features = [str(f).strip() for f in raw_features]
    features = [f for f in features if f][:MAX_GENERATED_FEATURES]

    return ContentBundle(
        **{name: str(data[name]) for name in ContentBundle.REQUIRED_TEXT_FIELDS},
        features=features,
    )


class ContentGenerator:
    """
    Generates a content bundle for a listing.

    The OpenAI client is injected; None means AI generation is unavailable
    and every call degrades to template content.
    """

    def __init__(
        self,
        openai_client: Optional[AsyncOpenAI],
        model: str = OPENAI_MODEL,
        temperature: float = OPENAI_TEMPERATURE,
        max_tokens: int = OPENAI_MAX_TOKENS,
    ):
        self.openai_client = openai_client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def is_available(self) -> bool:
        return self.openai_client is not None

    async def _complete(self, listing: ScrapedListing, modules: Sequence[str]) -> ContentBundle:
        platform = detect_platform(listing.url)
        completion = await self.openai_client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": build_system_prompt(listing, modules)},
                {
                    "role": "user",
                    "content": f"Generate social media content for this {platform} listing",
                },
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )

        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            raise ValueError("No response from OpenAI")
        return parse_generated_content(json.loads(text))

    async def generate(
        self,
        listing: ScrapedListing,
        modules: Sequence[str] = ("all",),
    ) -> ContentBundle:
        """
        Generate content, degrading to template content on provider failure.

        Raises:
            AIServiceError: key, rate-limit, timeout or quota failures
        """
        if not self.is_available:
            logger.warning("OpenAI not available, using fallback content generation")
            return listing_fallback_content(listing)

        try:
            bundle = await self._complete(listing, modules)
        except Exception as e:
            message = str(e)
            logger.error(f"OpenAI generation error: {type(e).__name__}: {message}")
            for marker, surfaced in SURFACED_ERRORS:
                if marker in message:
                    raise AIServiceError(surfaced) from e
            logger.warning("Falling back to template content")
            return listing_fallback_content(listing)

        logger.success(f"✅ Generated content for '{bundle.property_title}'")
        return bundle
