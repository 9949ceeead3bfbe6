"""
Transaction Service

Plain CRUD over incomes and expenses. Each record keeps the canonical
USD amount next to what the user actually typed (original_amount and
currency) so edits can be shown in the currency they were entered in.
"""

from datetime import date, datetime
from typing import Any, Optional, Type

from saveplay.domain.base import DomainService
from saveplay.errors import NotFoundError, ValidationError
from saveplay.models.audit import AuditEventType
from saveplay.models.finance import Currency, Expense, Income, Transaction, ValidationIssue
from saveplay.services.storage.paths import EXPENSES, INCOMES
from saveplay.validation import as_datetime, as_decimal


ENTITY_TYPES = {
    INCOMES: "income",
    EXPENSES: "expense",
}


class TransactionService(DomainService):
    """Record, edit and delete incomes and expenses."""

    # -------------------------------------------------------------------------
    # Incomes
    # -------------------------------------------------------------------------

    async def add_income(
        self,
        type: str,
        amount: Any,
        currency: Currency = Currency.USD,
        date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Income:
        return await self._add(INCOMES, Income, type, amount, currency, date, description)

    async def update_income(self, income_id: str, **changes: Any) -> Income:
        return await self._update(INCOMES, Income, income_id, changes)

    async def delete_income(self, income_id: str) -> None:
        await self._delete(INCOMES, income_id)

    async def list_incomes(self) -> list[Income]:
        return await self._list(INCOMES, Income)

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def add_expense(
        self,
        type: str,
        amount: Any,
        currency: Currency = Currency.USD,
        date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Expense:
        return await self._add(EXPENSES, Expense, type, amount, currency, date, description)

    async def update_expense(self, expense_id: str, **changes: Any) -> Expense:
        return await self._update(EXPENSES, Expense, expense_id, changes)

    async def delete_expense(self, expense_id: str) -> None:
        await self._delete(EXPENSES, expense_id)

    async def list_expenses(self) -> list[Expense]:
        return await self._list(EXPENSES, Expense)

    # -------------------------------------------------------------------------
    # Shared implementation
    # -------------------------------------------------------------------------

    async def _add(
        self,
        collection: str,
        model: Type[Transaction],
        category: str,
        amount: Any,
        currency: Currency,
        when: Optional[date],
        description: Optional[str],
    ):
        user_id = self._user_id()
        when = when or datetime.now()
        self._validator.ensure_valid(
            self._validator.validate_transaction(category, amount, when, description)
        )

        record = model(
            type=category,
            amount=self._to_canonical(amount, currency),
            original_amount=as_decimal(amount),
            currency=currency,
            date=as_datetime(when),
            description=description or None,
        )
        record_id = await self._store.push(self._collection(collection, user_id), record.to_document())
        record = record.model_copy(update={"id": record_id})

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.TRANSACTION_ADDED,
                user_id=user_id,
                entity_type=ENTITY_TYPES[collection],
                entity_id=record_id,
                details={"type": record.type, "amount": str(record.amount)},
            )
        return record

    async def _update(
        self,
        collection: str,
        model: Type[Transaction],
        record_id: str,
        changes: dict[str, Any],
    ):
        """
        Apply edits to type, amount, currency, date or description.

        Changing amount or currency recomputes the canonical amount from
        the amount as entered.
        """
        unknown = set(changes) - {"type", "amount", "currency", "date", "description"}
        if unknown:
            raise TypeError(f"Unexpected fields: {', '.join(sorted(unknown))}")

        user_id = self._user_id()
        path = self._record(collection, user_id, record_id)
        document = await self._store.get(path)
        if document is None:
            raise NotFoundError(ENTITY_TYPES[collection], record_id)
        current = model.from_document(document)

        issues: list[ValidationIssue] = []
        if "type" in changes:
            issues.extend(self._validator.validate_name(changes["type"], "type"))
        if "amount" in changes:
            issues.extend(self._validator.validate_positive_amount(changes["amount"]))
        if "date" in changes and not isinstance(changes["date"], date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
            ))
        if "description" in changes:
            issues.extend(self._validator.validate_description(changes["description"]))
        self._validator.ensure_valid(issues)

        fields: dict[str, Any] = {}
        if "type" in changes:
            fields["type"] = changes["type"]
        if "description" in changes:
            fields["description"] = changes["description"] or None
        if "date" in changes:
            fields["date"] = as_datetime(changes["date"])
        if "amount" in changes or "currency" in changes:
            currency = Currency(changes.get("currency", current.currency))
            entered = as_decimal(changes.get("amount", current.original_amount))
            fields["currency"] = currency
            fields["original_amount"] = entered
            fields["amount"] = self._to_canonical(entered, currency)

        try:
            updated = model.model_validate({**current.model_dump(), **fields})
        except ValueError as e:
            raise ValidationError([ValidationIssue(
                field="record",
                issue_type="invalid",
                message=str(e),
            )])

        new_document = updated.to_document()
        await self._store.update(path, {key: new_document[key] for key in fields})

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.TRANSACTION_UPDATED,
                user_id=user_id,
                entity_type=ENTITY_TYPES[collection],
                entity_id=record_id,
                details={key: new_document[key] for key in fields},
            )
        return updated

    async def _delete(self, collection: str, record_id: str) -> None:
        user_id = self._user_id()
        path = self._record(collection, user_id, record_id)
        if await self._store.get(path) is None:
            raise NotFoundError(ENTITY_TYPES[collection], record_id)

        await self._store.remove(path)

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.TRANSACTION_DELETED,
                user_id=user_id,
                entity_type=ENTITY_TYPES[collection],
                entity_id=record_id,
            )

    async def _list(self, collection: str, model: Type[Transaction]):
        """Newest first by date."""
        user_id = self._user_id()
        documents = await self._store.list(
            self._collection(collection, user_id),
            order_by="date",
            descending=True,
        )
        return [model.from_document(document) for document in documents]
