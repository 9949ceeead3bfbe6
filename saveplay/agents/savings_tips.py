"""
Savings Tip Agent

DESIGN DECISION: The tip is decoration, never data. The agent makes one
Gemini call with the user's goals and recent contributions and asks for a
short, motivating tip. Any failure (not configured, network error, empty
or unparseable answer) falls back to a fixed default tip. There are no
retries: a slow tip is worse than a generic one.

CRITICAL BOUNDARIES:
- CAN: Read goals and contribution history to personalize the message
- CANNOT: Write anything, or invent balances that were not provided
"""

import json
import re
from typing import Any, Iterable, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field

from saveplay.audit import AuditLogger
from saveplay.config import get_settings
from saveplay.models.finance import Contribution, Goal


logger = structlog.get_logger()

MAX_SENTENCES = 2
MAX_CONTRIBUTIONS_IN_PROMPT = 20

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


class SavingsTip(BaseModel):
    """A tip to show on the dashboard."""

    tip: str = Field(..., min_length=1)
    is_fallback: bool = Field(
        default=False,
        description="True when the default tip was used instead of the model's"
    )


def limit_sentences(text: str, max_sentences: int = MAX_SENTENCES) -> str:
    sentences = [s for s in _SENTENCE_END.split(text.strip()) if s]
    return " ".join(sentences[:max_sentences])


class SavingsTipAgent:
    """
    Generates a personalized savings tip with Gemini.

    Args:
        model: A configured GenerativeModel (built from settings if None)
        audit_logger: Records when the default tip had to be used
        default_tip: Tip used on any failure (from settings if None)
    """

    def __init__(
        self,
        model: Optional[Any] = None,
        audit_logger: Optional[AuditLogger] = None,
        default_tip: Optional[str] = None,
    ):
        self._model = model
        self._audit_logger = audit_logger
        self._default_tip = default_tip or get_settings().app.default_savings_tip

    def _configure_genai(self):
        """Configure Google Generative AI."""
        settings = get_settings().gemini
        genai.configure(api_key=settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
            }
        )

    def build_prompt(
        self,
        goals: Iterable[Goal],
        contributions: Iterable[Contribution],
    ) -> str:
        goal_lines = [
            f"- {goal.emoji} {goal.name}: Total amount needed: {goal.total_amount}, "
            f"Saved amount: {goal.saved_amount}, Deadline: {goal.deadline.isoformat()}"
            for goal in goals
        ]
        contribution_lines = [
            f"- Goal: {c.goal_name}, Amount: {c.amount}, Date: {c.date.isoformat()}"
            for c in list(contributions)[:MAX_CONTRIBUTIONS_IN_PROMPT]
        ]

        return f"""You are a personal finance advisor. Given the user's saving goals and contribution history, generate a personalized saving tip to help them stay motivated and find new ways to save.

Here are the user's saving goals:
{chr(10).join(goal_lines) or "- (no goals yet)"}

Here is the user's contribution history:
{chr(10).join(contribution_lines) or "- (no contributions yet)"}

Based on this information, provide one personalized saving tip in Spanish. The tip should be no more than {MAX_SENTENCES} sentences long.

Respond with ONLY a JSON object in this exact format:
{{"tip": "your tip"}}"""

    @staticmethod
    def parse_response(text: str) -> Optional[str]:
        """Pull the tip out of the model's answer (JSON or plain text)."""
        text = text.strip()
        start = text.find("{")
        end = text.rfind("}") + 1
        if start >= 0 and end > start:
            try:
                data = json.loads(text[start:end])
            except json.JSONDecodeError:
                data = None
            if isinstance(data, dict) and isinstance(data.get("tip"), str):
                text = data["tip"]
        tip = limit_sentences(text)
        return tip or None

    async def get_tip(
        self,
        goals: Iterable[Goal],
        contributions: Iterable[Contribution],
    ) -> SavingsTip:
        """
        Ask Gemini for a tip; fall back to the default tip on any failure.

        Never raises.
        """
        goals = list(goals)
        contributions = list(contributions)

        try:
            if self._model is None:
                self._configure_genai()
            response = await self._model.generate_content_async(
                self.build_prompt(goals, contributions)
            )
            tip = self.parse_response(response.text)
            if tip:
                return SavingsTip(tip=tip)
            reason = "Empty response from model"
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"

        logger.warning("savings_tip_fallback", reason=reason)
        if self._audit_logger:
            await self._audit_logger.log_tip_fallback(reason)
        return SavingsTip(tip=self._default_tip, is_fallback=True)
