"""LLM-backed advice provider using a LangChain chat model."""

from __future__ import annotations

import json
from typing import Any

import structlog
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from healthtwin.advisor.base import AdviceProvider, WeeklySummary
from healthtwin.advisor.prompts import SYSTEM_PROMPT, WEEKLY_PROMPT
from healthtwin.config import get_settings
from healthtwin.engine.advice import DISCLAIMER, MAX_TIPS
from healthtwin.engine.models import AdviceBundle

logger = structlog.get_logger(__name__)


class LLMAdviceProvider(AdviceProvider):
    """Generates weekly advice through an OpenAI chat model.

    The chat model is created lazily on first use so that constructing the
    provider never needs an API key.  Pass *llm* to supply any LangChain
    chat model (or a test double exposing ``ainvoke``).
    """

    name = "openai"

    def __init__(self, llm: Any | None = None) -> None:
        self._llm = llm

    def _ensure_llm(self) -> Any:
        if self._llm is None:
            settings = get_settings()
            if not settings.openai_api_key:
                raise RuntimeError("OpenAI API key not configured.")
            self._llm = ChatOpenAI(
                model=settings.openai_model,
                api_key=settings.openai_api_key,
                temperature=0.7,
            )
            logger.info("advisor.llm_initialised", model=settings.openai_model)
        return self._llm

    async def generate(self, summary: WeeklySummary) -> str:
        llm = self._ensure_llm()
        prompt = WEEKLY_PROMPT.format(
            days_logged=summary.days_logged,
            avg_steps=f"{summary.avg_steps:,}",
            avg_sleep=summary.avg_sleep,
            avg_water=summary.avg_water,
            avg_heart_rate=summary.avg_heart_rate,
            mood_summary=(
                "Mood entries: " + ", ".join(summary.mood_lines)
                if summary.mood_lines
                else "No mood data logged this week."
            ),
            disclaimer=DISCLAIMER,
        )
        result = await llm.ainvoke([SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=prompt)])
        content = result.content
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in content
            )
        return content


def parse_advice_response(raw_response: str) -> AdviceBundle | None:
    """Parse a provider response into an :class:`AdviceBundle`.

    Handles markdown code fences and commentary around the JSON object.
    Returns ``None`` when the response is unusable (no JSON object, missing
    narrative or tips).  The disclaimer is always replaced with the fixed
    string and tips are capped at three.
    """
    text = (raw_response or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
    if text.endswith("```"):
        text = text.rsplit("```", 1)[0]
    text = text.strip()

    if not text.startswith("{"):
        start = text.find("{")
        end = text.rfind("}") + 1
        if start == -1 or end <= start:
            return None
        text = text[start:end]

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None

    narrative = parsed.get("narrative")
    tips = parsed.get("tips")
    outcome = parsed.get("predictedOutcome") or parsed.get("predicted_outcome")
    if not isinstance(narrative, str) or not narrative.strip():
        return None
    if not isinstance(tips, list):
        return None
    tips = [t.strip() for t in tips if isinstance(t, str) and t.strip()][:MAX_TIPS]
    if not tips or not isinstance(outcome, str) or not outcome.strip():
        return None

    return AdviceBundle(
        narrative=narrative.strip(),
        tips=tips,
        predicted_outcome=outcome.strip(),
        disclaimer=DISCLAIMER,
    )
