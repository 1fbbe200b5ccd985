"""Property field extraction from free listing text"""

import re
from typing import List, Tuple

from .models import ParsedProperty

MIN_LISTING_PRICE = 50000

PROPERTY_TYPES = (
    (("single family", "single-family"), "single-family"),
    (("condo", "condominium"), "condo"),
    (("townhouse", "town home"), "townhouse"),
    (("multi-family", "multi family"), "multi-family"),
    (("land", "lot"), "land"),
)

FEATURE_KEYWORDS = (
    "swimming pool", "pool", "garage", "fireplace", "hardwood floors", "hardwood",
    "central ac", "ac", "dishwasher", "washer/dryer", "balcony", "garden",
    "basement", "attic", "walk-in closet", "granite countertop", "stainless steel",
)

PRICE_RE = re.compile(r"\$?([\d,]+(?:\.\d{2})?)")
BEDROOM_RE = re.compile(r"(\d+)\s*(?:bedroom|bed|br)", re.I)
BATHROOM_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:bathroom|bath|ba)", re.I)
SQFT_RE = re.compile(r"(\d+(?:,\d+)?)\s*(?:sq\.?\s*ft\.?|square\s*feet|sqft)", re.I)
YEAR_RE = re.compile(r"(?:built\s*in|year\s*built)\s*(\d{4})", re.I)
ADDRESS_RE = re.compile(
    r"(\d+\s+[\w\s]+(?:street|st|avenue|ave|road|rd|drive|dr|lane|ln|court|ct|place|pl"
    r"|way|circle|cir)\b\.?)",
    re.I,
)
CITY_STATE_RE = re.compile(r"([A-Z][a-zA-Z\s]+),?\s*([A-Z]{2})\b")
ZIP_RE = re.compile(r"\b(\d{5})(?:-\d{4})?\b")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def _parse_price(content: str) -> float:
    for raw in PRICE_RE.findall(content):
        digits = raw.replace(",", "")
        if not digits or digits == ".":
            continue
        value = float(digits)
        if value > MIN_LISTING_PRICE:
            return value
    return 0.0


def parse_property_content(content: str) -> ParsedProperty:
    """
    Extract property fields from listing text with regex heuristics.

    Fields that cannot be found are left as None.
    """
    data = ParsedProperty()
    text = content.lower()

    price = _parse_price(content)
    if price:
        data.price = price

    for keywords, property_type in PROPERTY_TYPES:
        if any(keyword in text for keyword in keywords):
            data.property_type = property_type
            break

    match = BEDROOM_RE.search(text)
    if match:
        data.bedrooms = int(match.group(1))

    match = BATHROOM_RE.search(text)
    if match:
        data.bathrooms = float(match.group(1))

    match = SQFT_RE.search(text)
    if match:
        data.square_feet = int(match.group(1).replace(",", ""))

    match = YEAR_RE.search(text)
    if match:
        data.year_built = int(match.group(1))

    match = ADDRESS_RE.search(content)
    if match:
        data.address = match.group(1).strip()

    match = CITY_STATE_RE.search(content)
    if match:
        data.city = match.group(1).strip()
        data.state = match.group(2)

    match = ZIP_RE.search(content)
    if match:
        data.zip_code = match.group(1)

    data.features = [kw[0].upper() + kw[1:] for kw in FEATURE_KEYWORDS if kw in text]

    sentences = [s for s in SENTENCE_SPLIT_RE.split(content) if len(s.strip()) > 20]
    if sentences:
        data.description = ". ".join(sentences[:3]).strip() + "."

    return data


def validate_parsed_data(data: ParsedProperty) -> Tuple[bool, List[str]]:
    """Check that the fields needed to create a listing were found"""
    errors = []
    if not data.address:
        errors.append("Address could not be determined")
    if not data.price or data.price <= 0:
        errors.append("Price could not be determined")
    if not data.property_type:
        errors.append("Property type could not be determined")
    return not errors, errors
