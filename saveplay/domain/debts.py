"""
Debt Service

Debts and the payments made against them.

Unlike goals, debts never archive: paid_amount may reach or pass the
total and the debt stays listed and payable.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from saveplay.domain.base import DomainService
from saveplay.errors import NotFoundError
from saveplay.models.audit import AuditEventType
from saveplay.models.finance import Currency, Debt, DebtPayment, ValidationIssue
from saveplay.services.storage.paths import DEBT_PAYMENTS, DEBTS, new_record_id


class DebtService(DomainService):
    """Create, pay, edit and delete debts."""

    async def create_debt(
        self,
        name: str,
        emoji: Optional[str],
        total_amount: Any,
        monthly_payment: Any,
        due_date: int,
        currency: Currency = Currency.USD,
    ) -> Debt:
        """
        Create a debt with nothing paid yet.

        Both amounts are entered in `currency` and stored in USD.

        Raises:
            ValidationError: On an empty name, non-positive amounts or a
                due day outside 1-31
        """
        user_id = self._user_id()
        self._validator.ensure_valid(
            self._validator.validate_debt(name, total_amount, monthly_payment, due_date)
        )

        debt = Debt(
            name=name,
            emoji=emoji or "💳",
            total_amount=self._to_canonical(total_amount, currency),
            monthly_payment=self._to_canonical(monthly_payment, currency),
            due_date=due_date,
        )
        debt_id = await self._store.push(self._collection(DEBTS, user_id), debt.to_document())
        debt = debt.model_copy(update={"id": debt_id})

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.DEBT_CREATED,
                user_id=user_id,
                entity_type="debt",
                entity_id=debt_id,
                details={"name": debt.name, "total_amount": str(debt.total_amount)},
            )
        return debt

    async def pay(
        self,
        debt_id: str,
        amount: Any,
        currency: Currency = Currency.USD,
    ) -> DebtPayment:
        """
        Record a payment against a debt.

        Raises:
            NotFoundError: If the debt does not exist
            ConflictError: If the debt kept changing while we wrote
        """
        user_id = self._user_id()
        self._validator.ensure_valid(self._validator.validate_positive_amount(amount))
        value = self._to_canonical(amount, currency)

        payment, debt = await self._with_conflict_retry(
            self._commit_payment, user_id, debt_id, value
        )

        if self._audit_logger:
            await self._audit_logger.log_debt_payment_added(
                user_id=user_id,
                debt_id=debt_id,
                payment_id=payment.id,
                amount=value,
                paid_amount=debt.paid_amount,
            )
        return payment

    async def _commit_payment(
        self,
        user_id: str,
        debt_id: str,
        value: Decimal,
    ) -> tuple[DebtPayment, Debt]:
        debt_path = self._record(DEBTS, user_id, debt_id)
        document = await self._store.get(debt_path)
        if document is None:
            raise NotFoundError("debt", debt_id)

        debt = Debt.from_document(document)
        updated = debt.model_copy(update={"paid_amount": debt.paid_amount + value})
        payment = DebtPayment(
            id=new_record_id(),
            debt_id=debt_id,
            debt_name=debt.name,
            amount=value,
            date=datetime.now(),
        )

        await self._store.atomic_update(
            {
                self._record(DEBT_PAYMENTS, user_id, payment.id): payment.to_document(),
                debt_path: updated.to_document(),
            },
            expected={debt_path: document},
        )
        return payment, updated

    async def delete_debt(self, debt_id: str) -> None:
        """
        Delete a debt together with all of its payments.

        Raises:
            NotFoundError: If the debt does not exist
        """
        user_id = self._user_id()
        if await self._store.get(self._record(DEBTS, user_id, debt_id)) is None:
            raise NotFoundError("debt", debt_id)

        deleted = await self._cascade_delete(
            user_id, DEBTS, debt_id, DEBT_PAYMENTS, "debt_id"
        )

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.DEBT_DELETED,
                user_id=user_id,
                entity_type="debt",
                entity_id=debt_id,
                details={"payments_deleted": deleted},
            )

    async def update_debt(
        self,
        debt_id: str,
        name: Optional[str] = None,
        emoji: Optional[str] = None,
        total_amount: Any = None,
        monthly_payment: Any = None,
        due_date: Optional[int] = None,
        currency: Currency = Currency.USD,
    ) -> Debt:
        """Edit a debt's descriptive fields and terms. paid_amount is left alone."""
        user_id = self._user_id()

        issues: list[ValidationIssue] = []
        if name is not None:
            issues.extend(self._validator.validate_name(name))
        if total_amount is not None:
            issues.extend(self._validator.validate_positive_amount(total_amount, "total_amount"))
        if monthly_payment is not None:
            issues.extend(self._validator.validate_positive_amount(monthly_payment, "monthly_payment"))
        if due_date is not None:
            issues.extend(self._validator.validate_due_day(due_date))
        self._validator.ensure_valid(issues)

        debt = await self.get_debt(debt_id)

        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name.strip()
        if emoji:
            changes["emoji"] = emoji
        if total_amount is not None:
            changes["total_amount"] = self._to_canonical(total_amount, currency)
        if monthly_payment is not None:
            changes["monthly_payment"] = self._to_canonical(monthly_payment, currency)
        if due_date is not None:
            changes["due_date"] = due_date
        if not changes:
            return debt

        updated = debt.model_copy(update=changes)
        document = updated.to_document()
        await self._store.update(
            self._record(DEBTS, user_id, debt_id),
            {key: document[key] for key in changes},
        )

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.DEBT_UPDATED,
                user_id=user_id,
                entity_type="debt",
                entity_id=debt_id,
                details={key: document[key] for key in changes},
            )
        return updated

    async def get_debt(self, debt_id: str) -> Debt:
        user_id = self._user_id()
        document = await self._store.get(self._record(DEBTS, user_id, debt_id))
        if document is None:
            raise NotFoundError("debt", debt_id)
        return Debt.from_document(document)

    async def list_debts(self) -> list[Debt]:
        """Debts, newest first."""
        user_id = self._user_id()
        documents = await self._store.list(
            self._collection(DEBTS, user_id),
            order_by="created_at",
            descending=True,
        )
        return [Debt.from_document(document) for document in documents]

    async def list_payments(self, debt_id: Optional[str] = None) -> list[DebtPayment]:
        """Payments, newest first, optionally for one debt."""
        user_id = self._user_id()
        documents = await self._store.list(
            self._collection(DEBT_PAYMENTS, user_id),
            order_by="date",
            descending=True,
        )
        payments = [DebtPayment.from_document(document) for document in documents]
        if debt_id is not None:
            payments = [p for p in payments if p.debt_id == debt_id]
        return payments
