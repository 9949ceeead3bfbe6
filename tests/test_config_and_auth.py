"""
Tests for configuration and the session auth provider.

Test strategy:
1. Settings come from the environment with safe defaults
2. Missing credentials are reported, not raised, by the startup check
3. Auth listeners see every sign-in and sign-out
"""

import pytest
from decimal import Decimal

from saveplay.config import get_settings, validate_all_settings
from saveplay.errors import AuthError
from saveplay.models.finance import UserIdentity
from saveplay.services.auth import SessionAuthProvider
from saveplay.services.currency import CurrencyConverter


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Test defaults without any environment."""
        monkeypatch.delenv("CURRENCY_USD_TO_DOP_RATE", raising=False)
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        settings = get_settings()

        assert settings.currency.usd_to_dop_rate == Decimal("59")
        assert settings.storage.backend == "memory"
        assert settings.app.conflict_retry_attempts == 3
        assert settings.app.cash_flow_months == 6

    def test_rate_from_environment(self, monkeypatch):
        """Test the exchange rate can be configured."""
        monkeypatch.setenv("CURRENCY_USD_TO_DOP_RATE", "60.5")

        assert CurrencyConverter().rate == Decimal("60.5")

    def test_missing_credentials_reported(self, monkeypatch):
        """Test the startup check lists unconfigured sections."""
        for name in (
            "GEMINI_API_KEY",
            "GOOGLE_SHEETS_CREDENTIALS_PATH",
            "GOOGLE_SHEETS_SPREADSHEET_ID",
        ):
            monkeypatch.delenv(name, raising=False)

        results = validate_all_settings()

        assert results["currency"] is True
        assert results["app"] is True
        assert results["gemini"] is False
        assert results["google_sheets"] is False
        assert "gemini_error" in results


class TestSessionAuthProvider:
    """Tests for SessionAuthProvider."""

    @pytest.mark.asyncio
    async def test_listeners(self):
        """Test listeners get the current user, then every change."""
        provider = SessionAuthProvider()
        seen = []

        unsubscribe = await provider.on_auth_state_changed(
            lambda user: seen.append(user.uid if user else None)
        )
        await provider.sign_in(UserIdentity(uid="u1"))
        await provider.sign_out()
        unsubscribe()
        await provider.sign_in(UserIdentity(uid="u2"))

        assert seen == [None, "u1", None]

    @pytest.mark.asyncio
    async def test_async_listener(self):
        """Test coroutine listeners are awaited."""
        provider = SessionAuthProvider(user=UserIdentity(uid="u1"))
        seen = []

        async def listener(user):
            seen.append(user)

        await provider.on_auth_state_changed(listener)

        assert seen[0].uid == "u1"

    def test_require_user(self):
        """Test AuthError when signed out."""
        with pytest.raises(AuthError):
            SessionAuthProvider().require_user()

        assert SessionAuthProvider(UserIdentity(uid="u1")).require_user().uid == "u1"
