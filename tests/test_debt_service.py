"""
Tests for the debt service.

Test strategy:
1. Payments and the paid total move together
2. Debts never archive, even when paid off
3. Deleting a debt takes its payments with it
"""

import pytest
from decimal import Decimal

from saveplay.aggregation import debt_progress_percent
from saveplay.errors import NotFoundError, ValidationError
from saveplay.models.audit import AuditEventType
from saveplay.models.finance import Currency


class TestDebtService:
    """Tests for DebtService."""

    @pytest.mark.asyncio
    async def test_create_debt(self, debt_service, audit_storage):
        """Test a new debt has nothing paid."""
        debt = await debt_service.create_debt("Card", None, 500, 100, 15)

        assert debt.paid_amount == Decimal("0")
        assert debt.emoji == "💳"
        assert audit_storage.types() == [AuditEventType.DEBT_CREATED]

    @pytest.mark.asyncio
    async def test_create_debt_in_dop(self, debt_service):
        """Test both amounts are converted to USD."""
        debt = await debt_service.create_debt("Préstamo", "🏦", 29500, 5900, 1, Currency.DOP)

        assert debt.total_amount == Decimal("500")
        assert debt.monthly_payment == Decimal("100")

    @pytest.mark.asyncio
    async def test_invalid_due_day(self, debt_service):
        """Test the due day must be a day of the month."""
        with pytest.raises(ValidationError) as exc_info:
            await debt_service.create_debt("Card", None, 500, 100, 32)

        assert exc_info.value.fields == ["due_date"]

    @pytest.mark.asyncio
    async def test_pay_off_debt_stays_listed(self, debt_service):
        """Test paying the full amount keeps the debt listed."""
        debt = await debt_service.create_debt("Card", None, 500, 100, 15)

        payment = await debt_service.pay(debt.id, 500)

        stored = await debt_service.get_debt(debt.id)
        assert payment.amount == Decimal("500")
        assert payment.debt_name == "Card"
        assert stored.paid_amount == Decimal("500")
        assert [d.id for d in await debt_service.list_debts()] == [debt.id]
        assert debt_progress_percent(stored.paid_amount, stored.total_amount) == 100

    @pytest.mark.asyncio
    async def test_overpayment_allowed(self, debt_service):
        """Test payments past the total are accepted."""
        debt = await debt_service.create_debt("Card", None, 500, 100, 15)

        await debt_service.pay(debt.id, 400)
        await debt_service.pay(debt.id, 400)

        stored = await debt_service.get_debt(debt.id)
        assert stored.paid_amount == Decimal("800")
        assert stored.remaining_amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_pay_missing_debt(self, debt_service):
        """Test NotFoundError for an unknown debt."""
        with pytest.raises(NotFoundError):
            await debt_service.pay("nope", 10)

    @pytest.mark.asyncio
    async def test_delete_cascades(self, debt_service):
        """Test payments go with their debt."""
        debt = await debt_service.create_debt("Card", None, 500, 100, 15)
        other = await debt_service.create_debt("Loan", None, 900, 90, 20)
        await debt_service.pay(debt.id, 100)
        await debt_service.pay(other.id, 90)

        await debt_service.delete_debt(debt.id)

        assert [d.id for d in await debt_service.list_debts()] == [other.id]
        payments = await debt_service.list_payments()
        assert [p.debt_id for p in payments] == [other.id]

    @pytest.mark.asyncio
    async def test_update_debt_keeps_paid_amount(self, debt_service):
        """Test editing terms leaves payments alone."""
        debt = await debt_service.create_debt("Card", None, 500, 100, 15)
        await debt_service.pay(debt.id, 100)

        updated = await debt_service.update_debt(debt.id, monthly_payment=150, due_date=20)

        assert updated.monthly_payment == Decimal("150")
        assert updated.due_date == 20
        assert (await debt_service.get_debt(debt.id)).paid_amount == Decimal("100")
