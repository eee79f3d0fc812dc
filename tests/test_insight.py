from __future__ import annotations

from types import SimpleNamespace

import pytest

from raincheck.insight import (
    EMPTY_MESSAGE,
    MISSING_KEY_MESSAGE,
    OFFLINE_MESSAGE,
    InsightGenerator,
    build_prompt,
)

from .helpers import FakeGemini


class _Blocked:
    """Response whose candidate was blocked: reading .text fails."""

    @property
    def text(self):
        raise ValueError("response was blocked by safety filters")


def generator_with(client: FakeGemini) -> InsightGenerator:
    generator = InsightGenerator(api_key="test-key")
    generator._client = client
    return generator


def test_prompt_carries_forecast_context(snapshot) -> None:
    prompt = build_prompt(snapshot, "Chiang Mai")

    assert "Location: Chiang Mai" in prompt
    assert "Current Temp: 28.5°C" in prompt
    assert "Current Condition Code: 61" in prompt
    # peak over the whole day, not just the next few hours
    assert "Max Precip Probability (Next few hours): 90%" in prompt


@pytest.mark.asyncio
async def test_missing_key_returns_fallback(snapshot) -> None:
    assert await InsightGenerator(api_key=None).generate(snapshot, "Home") == MISSING_KEY_MESSAGE
    assert await InsightGenerator(api_key="").generate(snapshot, "Home") == MISSING_KEY_MESSAGE


@pytest.mark.asyncio
async def test_returns_model_text(snapshot) -> None:
    client = FakeGemini(response=SimpleNamespace(text="  Rain by noon, pack an umbrella!  "))

    text = await generator_with(client).generate(snapshot, "Home")

    assert text == "Rain by noon, pack an umbrella!"
    assert client.requests[0]["model"] == "gemini-2.5-flash"
    assert "Location: Home" in client.requests[0]["contents"]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", None])
async def test_empty_text_returns_fallback(snapshot, text) -> None:
    client = FakeGemini(response=SimpleNamespace(text=text))

    assert await generator_with(client).generate(snapshot, "Home") == EMPTY_MESSAGE


@pytest.mark.asyncio
async def test_blocked_candidate_is_not_an_outage(snapshot) -> None:
    client = FakeGemini(response=_Blocked())

    assert await generator_with(client).generate(snapshot, "Home") == EMPTY_MESSAGE


@pytest.mark.asyncio
async def test_model_failure_returns_offline_message(snapshot) -> None:
    client = FakeGemini(error=RuntimeError("quota exceeded"))

    assert await generator_with(client).generate(snapshot, "Home") == OFFLINE_MESSAGE
