"""Advisor sub-package: weekly analysis via an external text provider."""

from healthtwin.advisor.base import AdviceProvider, WeeklySummary
from healthtwin.advisor.llm import LLMAdviceProvider, parse_advice_response
from healthtwin.advisor.service import WeeklyAdviceService, weekly_signals

__all__ = [
    "AdviceProvider",
    "LLMAdviceProvider",
    "WeeklyAdviceService",
    "WeeklySummary",
    "parse_advice_response",
    "weekly_signals",
]
