"""
Tests for incomes and expenses.

Test strategy:
1. The canonical amount is stored next to what the user typed
2. Edits recompute the canonical amount
3. Missing records raise NotFoundError
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from saveplay.errors import NotFoundError, ValidationError
from saveplay.models.finance import Currency


class TestTransactionService:
    """Tests for TransactionService."""

    @pytest.mark.asyncio
    async def test_add_income_in_usd(self, transaction_service):
        """Test USD income is stored as typed."""
        income = await transaction_service.add_income("Salario", 1000, date=datetime(2026, 3, 5, 9, 0))

        assert income.amount == Decimal("1000")
        assert income.original_amount == Decimal("1000")
        assert income.currency == Currency.USD

    @pytest.mark.asyncio
    async def test_add_expense_in_dop(self, transaction_service):
        """Test DOP expenses keep the typed amount."""
        expense = await transaction_service.add_expense("Comida", 590, Currency.DOP, date(2026, 3, 5))

        assert expense.amount == Decimal("10")
        assert expense.original_amount == Decimal("590")
        assert expense.currency == Currency.DOP
        assert expense.date == datetime(2026, 3, 5)

    @pytest.mark.asyncio
    async def test_default_date_is_now(self, transaction_service):
        """Test the date defaults to the current time."""
        before = datetime.now()
        income = await transaction_service.add_income("Venta", 5)

        assert income.date >= before

    @pytest.mark.asyncio
    async def test_invalid_input(self, transaction_service):
        """Test empty category and zero amount are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            await transaction_service.add_expense("", 0)

        assert set(exc_info.value.fields) == {"type", "amount"}

    @pytest.mark.asyncio
    async def test_update_recomputes_amount(self, transaction_service):
        """Test switching currency converts the typed amount again."""
        expense = await transaction_service.add_expense("Comida", 590, date=date(2026, 3, 5))

        updated = await transaction_service.update_expense(expense.id, currency=Currency.DOP)

        assert updated.amount == Decimal("10")
        assert updated.original_amount == Decimal("590")
        stored = (await transaction_service.list_expenses())[0]
        assert stored.amount == Decimal("10")

    @pytest.mark.asyncio
    async def test_update_description_only(self, transaction_service):
        """Test other fields are left alone."""
        income = await transaction_service.add_income("Salario", 1000, date=date(2026, 3, 1))

        updated = await transaction_service.update_income(income.id, description="Marzo")

        assert updated.description == "Marzo"
        assert updated.amount == Decimal("1000")

    @pytest.mark.asyncio
    async def test_update_unknown_field(self, transaction_service):
        """Test unsupported fields raise TypeError."""
        income = await transaction_service.add_income("Salario", 1000)

        with pytest.raises(TypeError):
            await transaction_service.update_income(income.id, created_at=datetime.now())

    @pytest.mark.asyncio
    async def test_update_and_delete_missing(self, transaction_service):
        """Test NotFoundError for unknown records."""
        with pytest.raises(NotFoundError):
            await transaction_service.update_income("nope", amount=5)
        with pytest.raises(NotFoundError):
            await transaction_service.delete_expense("nope")

    @pytest.mark.asyncio
    async def test_list_newest_first(self, transaction_service):
        """Test lists are ordered by date, newest first."""
        await transaction_service.add_expense("Ocio", 1, date=date(2026, 1, 1))
        await transaction_service.add_expense("Ocio", 2, date=date(2026, 3, 1))
        await transaction_service.add_expense("Ocio", 3, date=date(2026, 2, 1))

        amounts = [e.amount for e in await transaction_service.list_expenses()]

        assert amounts == [Decimal("2"), Decimal("3"), Decimal("1")]

    @pytest.mark.asyncio
    async def test_delete(self, transaction_service):
        """Test deleting removes the record."""
        income = await transaction_service.add_income("Regalo", 50)

        await transaction_service.delete_income(income.id)

        assert await transaction_service.list_incomes() == []
