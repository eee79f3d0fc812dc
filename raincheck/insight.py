"""
Gemini-backed forecast blurb.

`InsightGenerator.generate` always resolves to a string: missing credentials
or any model failure turns into one of the fixed fallback messages.
"""

from __future__ import annotations

import logging
from typing import Optional

from google import genai

from .errors import InsightUnavailable
from .schemas import WeatherSnapshot
from .weather import HOURS, peak_near_term_precipitation

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "AI insights unavailable (Missing API Key)."
EMPTY_MESSAGE = "Unable to generate insight."
OFFLINE_MESSAGE = "AI is currently offline due to connectivity issues."

PROMPT_TEMPLATE = """
You are the "Rain Alert AI", a helpful assistant for a weather notification system.

Context:
Location: {location}
Current Temp: {temperature}°C
Current Condition Code: {code}
Max Precip Probability (Next few hours): {peak}%

Task:
Generate a short, witty, and helpful "Push Notification" style message (max 2 sentences).
If it's going to rain, warn the user. If it's clear, tell them to enjoy the day.
Adopt a friendly persona like a personal assistant.
"""


def build_prompt(snapshot: WeatherSnapshot, location_name: str) -> str:
    return PROMPT_TEMPLATE.format(
        location=location_name,
        temperature=snapshot.current.temperature_c,
        code=snapshot.current.condition_code,
        peak=peak_near_term_precipitation(snapshot, HOURS),
    )


class InsightGenerator:
    def __init__(self, api_key: Optional[str], model_name: str = "gemini-2.5-flash"):
        self.api_key = api_key
        self.model_name = model_name
        self._client = None

    def _get_client(self):
        """Lazy-load the Gemini client so a missing key never breaks startup."""
        if not self.api_key:
            raise InsightUnavailable(MISSING_KEY_MESSAGE)
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def complete(self, prompt: str) -> str:
        """One request/response round trip. Every failure comes out as InsightUnavailable."""
        try:
            client = self._get_client()
            response = await client.aio.models.generate_content(model=self.model_name, contents=prompt)
        except InsightUnavailable:
            raise
        except Exception as e:
            raise InsightUnavailable(OFFLINE_MESSAGE) from e

        try:
            return response.text or ""
        except ValueError as e:
            # blocked or empty candidate: the call worked but there is nothing to show
            logger.warning("Gemini returned no usable text: %s", e)
            return ""

    async def generate(self, snapshot: WeatherSnapshot, location_name: str) -> str:
        if not self.api_key:
            logger.warning("Gemini API key not configured; skipping insight")
            return MISSING_KEY_MESSAGE

        try:
            text = await self.complete(build_prompt(snapshot, location_name))
        except InsightUnavailable as e:
            logger.error("Gemini error for %s: %s", location_name, e.__cause__ or e)
            return str(e)

        return text.strip() or EMPTY_MESSAGE
