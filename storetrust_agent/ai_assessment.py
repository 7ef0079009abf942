"""
AI visual design assessment using Google Gemini.
Screenshots go in, a small structured verdict comes out. Any failure yields None.
"""
from __future__ import annotations

import asyncio
import json
import logging
import math
import os
import re
from typing import Any

from . import config
from .errors import AiProviderError
from .models import AiAssessment, Screenshots

logger = logging.getLogger(__name__)

_MAX_PRIORITY_FIXES = 5

_PROMPT = """You are an elite e-commerce trust & conversion expert. Be direct, confident, and brutally honest.

You are given screenshots of an online store's homepage: the first image is the desktop view, the second (if present) is the mobile view.

Judge how trustworthy and professional the store looks to a first-time visitor: visual polish, layout, imagery quality, visible trust signals (payment badges, reviews, guarantees), and mobile readability.

Respond with ONLY valid JSON (no markdown, no code blocks):

{
  "designScore": <integer 1-10 rating the overall professional design quality>,
  "assessment": "<one punchy sentence summarising the store's current trust state>",
  "nicheComparison": "<one short sentence comparing the store to top players in its niche>",
  "priorityFixes": ["<3 specific, actionable fixes, each one sentence>"]
}
"""


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, int, float, bool)):
        s = str(value).strip()
        return [s] if s else []
    if isinstance(value, list):
        out: list[str] = []
        for item in value:
            if item is None:
                continue
            s = str(item).strip()
            if s:
                out.append(s)
        return out
    return [str(value)]


def _normalize_ai_output(raw: Any) -> AiAssessment | None:
    """Clamp/normalize a model response to the AiAssessment shape.

    Models occasionally return partial JSON, snake_case keys or scores out of
    range; anything without a usable design score is rejected.
    """
    if not isinstance(raw, dict):
        return None

    score_raw = raw.get("designScore", raw.get("design_score"))
    try:
        value = float(score_raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    design_score = int(round(value))
    design_score = max(1, min(10, design_score))

    assessment = str(raw.get("assessment") or "").strip() or "Assessment unavailable"
    niche = str(raw.get("nicheComparison") or raw.get("niche_comparison") or "").strip()
    fixes = _as_str_list(raw.get("priorityFixes", raw.get("priority_fixes")))[:_MAX_PRIORITY_FIXES]

    return AiAssessment(
        design_score=design_score,
        assessment=assessment,
        priority_fixes=fixes,
        niche_comparison=niche,
    )


def _parse_json_text(text: str) -> Any:
    text = (text or "").strip()
    if not text:
        raise AiProviderError("Empty model response")

    # Responses sometimes arrive wrapped in a markdown fence
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    text = text.strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    m = re.search(r"\{.*\}", text, flags=re.DOTALL)
    if not m:
        raise AiProviderError("Model response contained no JSON object")
    try:
        return json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise AiProviderError(f"Malformed JSON in model response: {e}") from e


async def _call_gemini(desktop: bytes, mobile: bytes | None) -> Any:
    """Call Gemini via the official google-genai SDK and return the parsed JSON."""
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise AiProviderError("GEMINI_API_KEY is not set")

    try:
        from google import genai
        from google.genai import types
    except ImportError as e:
        raise AiProviderError(f"google-genai not available: {e}") from e

    try:
        parts = [
            types.Part.from_text(text=_PROMPT),
            types.Part.from_bytes(data=desktop, mime_type="image/png"),
        ]
        if mobile:
            parts.append(types.Part.from_bytes(data=mobile, mime_type="image/png"))

        client = genai.Client(api_key=api_key)
        gen_config = types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=0.2,
            max_output_tokens=1024,
        )
        resp = await client.aio.models.generate_content(
            model=config.GEMINI_MODEL,
            contents=[types.Content(role="user", parts=parts)],
            config=gen_config,
        )
    except Exception as e:
        raise AiProviderError(f"Gemini call failed: {e}") from e

    return _parse_json_text(getattr(resp, "text", None) or "")


async def assess_design(screenshots: Screenshots, timeout_s: float | None = None) -> AiAssessment | None:
    """Ask the model for a design verdict. Returns None on any failure."""
    if not screenshots.desktop:
        logger.info("Skipping AI assessment: no desktop screenshot")
        return None

    timeout = config.AI_TIMEOUT_S if timeout_s is None else timeout_s
    try:
        raw = await asyncio.wait_for(_call_gemini(screenshots.desktop, screenshots.mobile), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("AI assessment timed out after %.1fs", timeout)
        return None
    except AiProviderError as e:
        logger.warning("AI assessment unavailable: %s", e)
        return None

    result = _normalize_ai_output(raw)
    if result is None:
        logger.warning("AI assessment discarded: response did not match the expected shape")
    return result
