import json
from types import SimpleNamespace

import pytest

import estateflow.retry as retry

LLM_REPLY = {
    "property_title": "Harbor View Condo",
    "property_summary": "Bright two bedroom condo with marina views.",
    "instagram": "Wake up to the water 🌊 #JustListed",
    "linkedin": "Strong rental demand in this marina district.",
    "tiktok": "Hook: look at this view! Body: ... CTA: DM me",
    "mls_description": "Two bedroom, two bath condominium.",
    "email_blast": "Subject: Just listed\n\nHi there...",
    "marketing_headline": "Marina Living at Its Best",
    "features": [" 2 Beds ", "2 Baths", "", "Pool", "Gym", "Dock", "View", "Parking", "Storage", "Spa"],
}


class FakeCompletions:
    """Stands in for ``AsyncOpenAI().chat.completions``"""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def sleeps(monkeypatch):
    """Record backoff delays instead of sleeping"""
    recorded = []

    async def fake_sleep(delay_ms):
        recorded.append(delay_ms)

    monkeypatch.setattr(retry, "_sleep", fake_sleep)
    return recorded


@pytest.fixture
def llm_reply():
    return dict(LLM_REPLY)


@pytest.fixture
def fake_openai():
    """Factory for an OpenAI client whose completion returns ``reply`` or raises ``error``"""

    def make(reply=None, error=None):
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        completions = FakeCompletions(reply, error)
        return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions

    return make
