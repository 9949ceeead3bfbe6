"""
Tests for the savings tip agent.

Test strategy:
1. No real API calls (the Gemini model is mocked)
2. Any failure falls back to the default tip and never raises
3. Answers are trimmed to two sentences
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from saveplay.agents import SavingsTipAgent
from saveplay.agents.savings_tips import limit_sentences
from saveplay.models.audit import AuditEventType
from saveplay.models.finance import Contribution, Goal


DEFAULT_TIP = "¡Automatiza tu ahorro y olvídate! 🤖"


def model_returning(text=None, error=None):
    model = MagicMock()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=MagicMock(text=text))
    return model


@pytest.fixture
def goals():
    return [Goal(
        id="g1",
        name="Laptop",
        emoji="💻",
        total_amount=Decimal("1000"),
        saved_amount=Decimal("250"),
        deadline=date(2026, 12, 1),
    )]


@pytest.fixture
def contributions():
    return [Contribution(
        goal_id="g1",
        goal_name="Laptop",
        amount=Decimal("250"),
        date=datetime(2026, 4, 1),
    )]


class TestParseResponse:
    """Tests for reading the model's answer."""

    def test_json_answer(self):
        """Test the tip is pulled out of a JSON object."""
        text = 'Claro:\n```json\n{"tip": "Ahorra primero, gasta después."}\n```'
        assert SavingsTipAgent.parse_response(text) == "Ahorra primero, gasta después."

    def test_plain_text_answer(self):
        """Test plain text is used as-is."""
        assert SavingsTipAgent.parse_response("  Cocina en casa.  ") == "Cocina en casa."

    def test_empty_answer(self):
        """Test blank answers give None."""
        assert SavingsTipAgent.parse_response("   ") is None

    def test_limit_sentences(self):
        """Test answers are cut to two sentences."""
        text = "Uno. ¿Dos? ¡Tres! Cuatro."
        assert limit_sentences(text) == "Uno. ¿Dos?"


class TestGetTip:
    """Tests for the full tip flow."""

    @pytest.mark.asyncio
    async def test_tip_from_model(self, goals, contributions):
        """Test a good answer is returned."""
        model = model_returning('{"tip": "Separa el 10% de cada ingreso."}')
        agent = SavingsTipAgent(model=model, default_tip=DEFAULT_TIP)

        tip = await agent.get_tip(goals, contributions)

        assert tip.tip == "Separa el 10% de cada ingreso."
        assert not tip.is_fallback
        prompt = model.generate_content_async.call_args.args[0]
        assert "💻 Laptop" in prompt
        assert "Amount: 250" in prompt

    @pytest.mark.asyncio
    async def test_fallback_on_error(self, goals, contributions, audit_logger, audit_storage):
        """Test any exception falls back and is audited."""
        model = model_returning(error=RuntimeError("quota exceeded"))
        agent = SavingsTipAgent(model=model, audit_logger=audit_logger, default_tip=DEFAULT_TIP)

        tip = await agent.get_tip(goals, contributions)

        assert tip.tip == DEFAULT_TIP
        assert tip.is_fallback
        assert audit_storage.types() == [AuditEventType.TIP_FALLBACK_USED]
        assert "quota exceeded" in audit_storage.events[0].error_message

    @pytest.mark.asyncio
    async def test_fallback_on_empty_answer(self, goals, contributions):
        """Test an empty answer falls back."""
        agent = SavingsTipAgent(model=model_returning(""), default_tip=DEFAULT_TIP)

        tip = await agent.get_tip(goals, contributions)

        assert tip.is_fallback

    @pytest.mark.asyncio
    async def test_fallback_without_api_key(self, monkeypatch, goals, contributions):
        """Test a missing API key falls back instead of raising."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        agent = SavingsTipAgent(default_tip=DEFAULT_TIP)

        tip = await agent.get_tip(goals, contributions)

        assert tip.tip == DEFAULT_TIP

    def test_prompt_without_history(self):
        """Test the prompt handles a new user."""
        prompt = SavingsTipAgent(model=MagicMock(), default_tip=DEFAULT_TIP).build_prompt([], [])

        assert "(no goals yet)" in prompt
        assert "(no contributions yet)" in prompt
