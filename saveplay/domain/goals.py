"""
Goal Service

Savings goals and the contributions made towards them.

CRITICAL INVARIANTS:
- saved_amount only grows, and only through contribute()
- A goal is archived by the contribution that first brings it to its
  target, in the same write as that contribution, and never reopens
- Deleting a goal deletes every contribution that points at it
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import structlog

from saveplay.domain.base import DomainService
from saveplay.errors import InvalidStateError, NotFoundError, ValidationError
from saveplay.models.audit import AuditEventType
from saveplay.models.finance import Contribution, Currency, Goal, GoalStatus, ValidationIssue
from saveplay.services.storage.paths import CONTRIBUTIONS, GOALS, new_record_id
from saveplay.validation import as_date


logger = structlog.get_logger()


class GoalService(DomainService):
    """Create, fund, edit and delete savings goals."""

    async def create_goal(
        self,
        name: str,
        emoji: Optional[str],
        total_amount: Any,
        deadline: date,
        currency: Currency = Currency.USD,
    ) -> Goal:
        """
        Create an active goal with nothing saved yet.

        Raises:
            AuthError: If nobody is signed in
            ValidationError: If the name is empty or the target is not positive
        """
        user_id = self._user_id()
        warnings = self._validator.ensure_valid(
            self._validator.validate_goal(name, total_amount, deadline)
        )
        for warning in warnings:
            logger.info("goal_input_warning", field=warning.field, message=warning.message)

        goal = Goal(
            name=name,
            emoji=emoji or "🎯",
            total_amount=self._to_canonical(total_amount, currency),
            deadline=as_date(deadline),
        )
        goal_id = await self._store.push(self._collection(GOALS, user_id), goal.to_document())
        goal = goal.model_copy(update={"id": goal_id})

        if self._audit_logger:
            await self._audit_logger.log_goal_created(
                user_id=user_id,
                goal_id=goal_id,
                name=goal.name,
                total_amount=goal.total_amount,
            )
        return goal

    async def contribute(
        self,
        goal_id: str,
        amount: Any,
        currency: Currency = Currency.USD,
    ) -> bool:
        """
        Put money towards a goal.

        Returns:
            True if this contribution completed (and archived) the goal

        Raises:
            NotFoundError: If the goal does not exist
            InvalidStateError: If the goal is already archived
            ConflictError: If the goal kept changing while we wrote
        """
        user_id = self._user_id()
        self._validator.ensure_valid(self._validator.validate_positive_amount(amount))
        value = self._to_canonical(amount, currency)

        completed, contribution, goal = await self._with_conflict_retry(
            self._commit_contribution, user_id, goal_id, value
        )

        if self._audit_logger:
            await self._audit_logger.log_contribution_added(
                user_id=user_id,
                goal_id=goal_id,
                contribution_id=contribution.id,
                amount=value,
                saved_amount=goal.saved_amount,
            )
            if completed:
                await self._audit_logger.log_goal_archived(
                    user_id=user_id,
                    goal_id=goal_id,
                    name=goal.name,
                )
        return completed

    async def _commit_contribution(
        self,
        user_id: str,
        goal_id: str,
        value: Decimal,
    ) -> tuple[bool, Contribution, Goal]:
        goal_path = self._record(GOALS, user_id, goal_id)
        document = await self._store.get(goal_path)
        if document is None:
            raise NotFoundError("goal", goal_id)

        goal = Goal.from_document(document)
        if goal.is_archived:
            raise InvalidStateError("This goal is already complete.")

        new_saved = goal.saved_amount + value
        completed = new_saved >= goal.total_amount

        updated = goal.model_copy(update={
            "saved_amount": new_saved,
            "status": GoalStatus.ARCHIVED if completed else goal.status,
        })
        contribution = Contribution(
            id=new_record_id(),
            goal_id=goal_id,
            goal_name=goal.name,
            amount=value,
            date=datetime.now(),
        )

        await self._store.atomic_update(
            {
                self._record(CONTRIBUTIONS, user_id, contribution.id): contribution.to_document(),
                goal_path: updated.to_document(),
            },
            expected={goal_path: document},
        )
        return completed, contribution, updated

    async def delete_goal(self, goal_id: str) -> None:
        """
        Delete a goal together with all of its contributions.

        Raises:
            NotFoundError: If the goal does not exist
        """
        user_id = self._user_id()
        if await self._store.get(self._record(GOALS, user_id, goal_id)) is None:
            raise NotFoundError("goal", goal_id)

        deleted = await self._cascade_delete(
            user_id, GOALS, goal_id, CONTRIBUTIONS, "goal_id"
        )

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.GOAL_DELETED,
                user_id=user_id,
                entity_type="goal",
                entity_id=goal_id,
                details={"contributions_deleted": deleted},
            )

    async def update_goal(
        self,
        goal_id: str,
        name: Optional[str] = None,
        emoji: Optional[str] = None,
        total_amount: Any = None,
        deadline: Optional[date] = None,
        currency: Currency = Currency.USD,
    ) -> Goal:
        """
        Edit the descriptive fields of an active goal.

        Progress (saved_amount, status) is never touched here, so the new
        target must stay above what is already saved.

        Raises:
            NotFoundError: If the goal does not exist
            InvalidStateError: If the goal is archived
            ValidationError: If a supplied field is invalid or the target
                is not above the saved amount
        """
        user_id = self._user_id()

        issues: list[ValidationIssue] = []
        if name is not None:
            issues.extend(self._validator.validate_name(name))
        if total_amount is not None:
            issues.extend(self._validator.validate_positive_amount(total_amount, "total_amount"))
        if deadline is not None and not isinstance(deadline, date):
            issues.append(ValidationIssue(
                field="deadline",
                issue_type="missing",
                message="Deadline must be a date",
            ))
        self._validator.ensure_valid(issues)

        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name.strip()
        if emoji:
            changes["emoji"] = emoji
        if total_amount is not None:
            changes["total_amount"] = self._to_canonical(total_amount, currency)
        if deadline is not None:
            changes["deadline"] = as_date(deadline)

        updated = await self._with_conflict_retry(
            self._commit_goal_edit, user_id, goal_id, changes
        )
        if not changes:
            return updated

        document = updated.to_document()
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.GOAL_UPDATED,
                user_id=user_id,
                entity_type="goal",
                entity_id=goal_id,
                details={key: document[key] for key in changes},
            )
        return updated

    async def _commit_goal_edit(
        self,
        user_id: str,
        goal_id: str,
        changes: dict[str, Any],
    ) -> Goal:
        goal_path = self._record(GOALS, user_id, goal_id)
        document = await self._store.get(goal_path)
        if document is None:
            raise NotFoundError("goal", goal_id)

        goal = Goal.from_document(document)
        if goal.is_archived:
            raise InvalidStateError("Archived goals can't be edited.")
        if not changes:
            return goal

        # A contribution is the only thing that may archive a goal
        if "total_amount" in changes and changes["total_amount"] <= goal.saved_amount:
            raise ValidationError([ValidationIssue(
                field="total_amount",
                issue_type="below_saved",
                message="Target must be greater than the amount already saved",
            )])

        updated = goal.model_copy(update=changes)
        await self._store.atomic_update(
            {goal_path: updated.to_document()},
            expected={goal_path: document},
        )
        return updated

    async def get_goal(self, goal_id: str) -> Goal:
        user_id = self._user_id()
        document = await self._store.get(self._record(GOALS, user_id, goal_id))
        if document is None:
            raise NotFoundError("goal", goal_id)
        return Goal.from_document(document)

    async def list_goals(self, status: Optional[GoalStatus] = None) -> list[Goal]:
        """Goals, newest first, optionally filtered by status."""
        user_id = self._user_id()
        documents = await self._store.list(
            self._collection(GOALS, user_id),
            order_by="created_at",
            descending=True,
        )
        goals = [Goal.from_document(document) for document in documents]
        if status is not None:
            goals = [goal for goal in goals if goal.status == status]
        return goals

    async def list_contributions(self, goal_id: Optional[str] = None) -> list[Contribution]:
        """Contributions, newest first, optionally for one goal."""
        user_id = self._user_id()
        documents = await self._store.list(
            self._collection(CONTRIBUTIONS, user_id),
            order_by="date",
            descending=True,
        )
        contributions = [Contribution.from_document(document) for document in documents]
        if goal_id is not None:
            contributions = [c for c in contributions if c.goal_id == goal_id]
        return contributions
