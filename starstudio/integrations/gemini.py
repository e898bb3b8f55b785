"""
AI video analysis via Google Gemini.

Without an API key the analyzer returns a fixed mock result.
Rate-limit responses (429 / RESOURCE_EXHAUSTED) are retried with
exponential backoff: 10s, 20s, 40s.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any

import google.generativeai as genai
import structlog
from google.api_core import exceptions as google_exceptions

from starstudio.core.config import Settings, get_settings

log = structlog.get_logger()

MAX_RETRIES = 3
BASE_DELAY_SECONDS = 10.0

ANALYSIS_PROMPT = """You are a professional video analyst. Analyse this video and answer with JSON
only, exactly in this shape:

{
  "summary": "one or two sentences covering strengths and what to improve",
  "scores": {"overall": 75, "audio": 80, "visual": 70, "editing": 65, "storytelling": 85},
  "todoItems": [
    {"text": "a concrete, actionable improvement", "category": "audio", "priority": "high", "ai": true}
  ],
  "insights": [
    {"title": "short title", "content": "explanation with evidence", "type": "tip"}
  ]
}

Criteria:
- audio: loudness balance, background music, clarity, noise
- visual: framing, colour, subtitle legibility, thumbnail quality
- editing: cut rhythm, pacing, unnecessary scenes, tempo
- storytelling: hook, delivery, conclusion, retention

Produce 3-5 todoItems and 2-3 insights. Every score is between 0 and 100."""

REQUIRED_KEYS = ("summary", "scores", "todoItems", "insights")


class AnalysisError(Exception):
    """The model answered with something that is not a usable analysis."""


def mock_result() -> dict[str, Any]:
    return {
        "summary": "Steady editing flow overall; audio levels and subtitle legibility need work. "
        "The story structure is strong.",
        "scores": {"overall": 72, "audio": 65, "visual": 75, "editing": 70, "storytelling": 80},
        "todoItems": [
            {"text": "Normalise audio to -14 LUFS", "category": "audio", "priority": "high", "ai": True},
            {"text": "Increase subtitle font size to at least 120%", "category": "visual",
             "priority": "medium", "ai": True},
            {"text": "Add a hook within the first 3 seconds", "category": "storytelling",
             "priority": "high", "ai": True},
        ],
        "insights": [
            {"title": "Strengthen the opening", "content": "The first five seconds lack a hook.",
             "type": "tip"},
            {"title": "Consistent colour", "content": "Grading is consistent throughout.",
             "type": "praise"},
        ],
    }


def parse_response(text: str) -> dict[str, Any]:
    """Strip markdown fences and validate the analysis JSON."""
    cleaned = re.sub(r"```(?:json)?\s*", "", text, flags=re.IGNORECASE).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise AnalysisError(f"response is not JSON: {exc}") from exc
    if not isinstance(parsed, dict) or any(not parsed.get(k) for k in REQUIRED_KEYS):
        raise AnalysisError("response is missing summary, scores, todoItems or insights")
    return parsed


def _is_rate_limited(exc: Exception) -> bool:
    if isinstance(exc, google_exceptions.ResourceExhausted):
        return True
    text = str(exc)
    return "429" in text or "RESOURCE_EXHAUSTED" in text


class GeminiAnalyzer:
    def __init__(self, settings: Settings | None = None, base_delay: float = BASE_DELAY_SECONDS):
        settings = settings or get_settings()
        self._api_key = settings.gemini_api_key
        self.model_name = settings.gemini_model
        self._base_delay = base_delay

    @property
    def configured(self) -> bool:
        return bool(self._api_key) and self._api_key != "placeholder" and len(self._api_key) > 10

    async def analyze(self, download_url: str) -> dict[str, Any]:
        if not self.configured:
            log.info("gemini.mock_result", url=download_url)
            return mock_result()

        for attempt in range(MAX_RETRIES + 1):
            try:
                return await self._call(download_url)
            except Exception as exc:
                if _is_rate_limited(exc) and attempt < MAX_RETRIES:
                    delay = self._base_delay * (2 ** attempt)
                    log.warning("gemini.rate_limited", attempt=attempt + 1, delay_seconds=delay)
                    await asyncio.sleep(delay)
                    continue
                raise

    async def _call(self, download_url: str) -> dict[str, Any]:
        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self.model_name)
        response = await model.generate_content_async(
            [
                {"file_data": {"mime_type": "video/mp4", "file_uri": download_url}},
                ANALYSIS_PROMPT,
            ]
        )
        return parse_response(response.text)
