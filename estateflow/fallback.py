"""Template-based content generation used when AI services are unavailable"""

from typing import Any, List, Optional

from .exceptions import MissingInputError
from .models import ContentBundle, ScrapedListing

FALLBACK_TITLE = "Property Listing"
FALLBACK_HEADLINE = "Stunning Property with Exceptional Features"
FALLBACK_FEATURES = ["Beautiful Property", "Prime Location", "Excellent Features"]
FALLBACK_NEIGHBORHOOD = ["Great Location", "Excellent Schools", "Easy Access"]
MAX_KEY_FEATURES = 5

# Used in place of an excerpt when there is no input text to quote
EMPTY_SUMMARY = "Stunning property with excellent features and prime location."
EMPTY_MLS = (
    "Beautiful property with excellent features and prime location. This property "
    "offers exceptional value and is perfect for discerning buyers."
)


def _excerpt(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _email_blast(subject: str, body: str) -> str:
    return (
        f"Subject: {subject}\n"
        "\n"
        "Hi [Client Name],\n"
        "\n"
        "I wanted to share this exciting new listing with you!\n"
        "\n"
        f"{body}\n"
        "\n"
        "This property offers exceptional value and is perfect for discerning buyers. "
        "Don't miss this opportunity!\n"
        "\n"
        "Best regards,\n"
        "[Your Name]"
    )


def generate_fallback_content(input_text: str, kind: str = "social") -> ContentBundle:
    """
    Build a complete content bundle from raw text without calling any AI.

    Every required text field is non-empty, even for empty input.

    Args:
        input_text: Property description as typed or pasted by the user
        kind: "social" or "listing"; listing adds description, key features
            and neighborhood highlights and uses the input as MLS text

    Returns:
        Fully populated ContentBundle
    """
    summary = _excerpt(input_text, 200) or EMPTY_SUMMARY
    mls = _excerpt(input_text, 300) or EMPTY_MLS

    bundle = ContentBundle(
        property_title=FALLBACK_TITLE,
        property_summary=summary,
        instagram=(
            f"🏡 Check out this amazing property! {_excerpt(input_text, 150)} "
            "Don't miss this opportunity! #RealEstate #DreamHome #JustListed"
        ),
        linkedin=(
            f"Excited to share this property opportunity: {_excerpt(input_text, 150)} "
            "Contact me for more details and market insights. "
            "#RealEstate #PropertyInvestment"
        ),
        tiktok=(
            "🎥 Hook: Check out this incredible property! 🏡 "
            f"Body: {_excerpt(input_text, 100)} "
            "CTA: DM me for a private showing! 📲"
        ),
        mls_description=mls,
        email_blast=_email_blast("🏡 New Listing Alert", summary),
        marketing_headline=FALLBACK_HEADLINE,
        features=list(FALLBACK_FEATURES),
    )

    if kind == "listing":
        bundle.property_description = input_text
        bundle.key_features = [f.strip() for f in input_text.split(",")][:MAX_KEY_FEATURES]
        bundle.neighborhood_highlights = list(FALLBACK_NEIGHBORHOOD)
        if input_text:
            bundle.mls_description = input_text

    return bundle


def fallback_input_text(input: Optional[str] = None, property_data: Any = None) -> str:
    """
    Resolve the text to build fallback content from.

    Raises:
        MissingInputError: Neither input nor property data yields any text
    """
    if input and isinstance(input, str):
        return input

    text = ""
    if isinstance(property_data, str):
        text = property_data
    elif isinstance(property_data, dict):
        address = property_data.get("address")
        description = property_data.get("description")
        if address and description:
            text = f"{address}: {description}"
        else:
            text = address or description or ""

    if not text:
        raise MissingInputError()
    return text


def listing_fallback_content(listing: ScrapedListing) -> ContentBundle:
    """Content built from a scraped listing's title and description"""
    title = listing.title or "Beautiful Property"
    description = listing.description or EMPTY_SUMMARY
    teaser = f"{title} - {description}"

    return ContentBundle(
        property_title=title,
        property_summary=description,
        instagram=(
            f"Check out this amazing property! {teaser} Don't miss this opportunity! "
            "#RealEstate #DreamHome #JustListed"
        ),
        linkedin=(
            f"Excited to share this property opportunity: {title}. {description} "
            "Contact me for more details and market insights. "
            "#RealEstate #PropertyInvestment"
        ),
        tiktok=(
            f"🎥 Hook: Check out this incredible property! 🏡 Body: {teaser} "
            "CTA: DM me for a private showing! 📲"
        ),
        mls_description=(
            f"{title}. {description} This property offers exceptional value and is "
            "perfect for discerning buyers seeking quality and convenience."
        ),
        email_blast=_email_blast(f"🏡 New Listing Alert: {title}", teaser),
        marketing_headline=FALLBACK_HEADLINE,
        features=list(FALLBACK_FEATURES),
    )


def missing_fields(bundle: ContentBundle) -> List[str]:
    """Names of required text fields that are empty"""
    return [name for name in ContentBundle.REQUIRED_TEXT_FIELDS if not getattr(bundle, name)]
