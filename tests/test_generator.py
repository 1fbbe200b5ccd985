import pytest

from estateflow.exceptions import AIServiceError
from estateflow.generator import (
    ContentGenerator,
    build_openai_client,
    build_system_prompt,
    parse_generated_content,
)
from estateflow.models import ScrapedListing

LISTING = ScrapedListing(
    title="Harbor View Condo",
    description="Two bedroom condo over the marina.",
    content="# Harbor View Condo\n2 beds, 2 baths, marina views.",
    url="https://www.redfin.com/FL/Miami/harbor-view",
)


def test_parse_generated_content_cleans_features(llm_reply):
    bundle = parse_generated_content(llm_reply)
    assert bundle.features == ["2 Beds", "2 Baths", "Pool", "Gym", "Dock", "View", "Parking", "Storage"]
    assert bundle.marketing_headline == "Marina Living at Its Best"


def test_parse_generated_content_rejects_missing_fields(llm_reply):
    llm_reply["instagram"] = ""
    with pytest.raises(ValueError, match="instagram"):
        parse_generated_content(llm_reply)


def test_system_prompt_sections_follow_modules():
    social = build_system_prompt(LISTING, ["social"])
    assert "from redfin" in social
    assert "'instagram'" in social
    assert "'mls_description'" not in social
    assert social.endswith(LISTING.content)

    everything = build_system_prompt(LISTING, ["all"])
    assert "'instagram'" in everything and "'mls_description'" in everything


def test_build_openai_client_without_key():
    assert build_openai_client(None) is None
    assert build_openai_client("") is None


@pytest.mark.asyncio
async def test_generate_with_openai(fake_openai, llm_reply):
    client, completions = fake_openai(llm_reply)
    bundle = await ContentGenerator(client, model="gpt-test").generate(LISTING, ["listing"])

    assert bundle.property_title == "Harbor View Condo"
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"][1]["content"] == "Generate social media content for this redfin listing"


@pytest.mark.asyncio
async def test_generate_without_client_uses_listing_fallback():
    generator = ContentGenerator(None)
    assert not generator.is_available
    bundle = await generator.generate(LISTING)
    assert bundle.property_title == "Harbor View Condo"
    assert bundle.features == ["Beautiful Property", "Prime Location", "Excellent Features"]


@pytest.mark.asyncio
async def test_generate_invalid_reply_falls_back(fake_openai):
    client, _ = fake_openai("not json")
    bundle = await ContentGenerator(client).generate(LISTING)
    assert bundle.marketing_headline == "Stunning Property with Exceptional Features"


@pytest.mark.asyncio
async def test_generate_empty_reply_falls_back(fake_openai):
    client, _ = fake_openai(None)
    bundle = await ContentGenerator(client).generate(LISTING)
    assert bundle.property_summary == LISTING.description


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Incorrect API key provided", "API key is invalid"),
        ("You hit the rate limit", "rate limit exceeded"),
        ("Request timeout", r"\(timeout\)"),
        ("Error code: 429 - insufficient_quota", "quota exceeded"),
    ],
)
@pytest.mark.asyncio
async def test_provider_failures_are_surfaced(fake_openai, message, expected):
    client, _ = fake_openai(error=RuntimeError(message))
    with pytest.raises(AIServiceError, match=expected):
        await ContentGenerator(client).generate(LISTING)
