"""
Category Service

Income and expense categories. Incomes and expenses refer to a category
by name only, so renaming or deleting a category never touches existing
records; details() resolves a name to a label and emoji with a fallback.
"""

from typing import List, Optional

from saveplay.domain.base import DomainService
from saveplay.errors import NotFoundError
from saveplay.models.audit import AuditEventType
from saveplay.models.finance import Category, CategoryKind, ValidationIssue
from saveplay.services.storage.paths import EXPENSE_CATEGORIES, INCOME_CATEGORIES


DEFAULT_INCOME_CATEGORIES = [
    ("Salario", "💼"),
    ("Ingreso Extra", "🎁"),
    ("Regalo", "🎉"),
    ("Venta", "🏷️"),
]

DEFAULT_EXPENSE_CATEGORIES = [
    ("Comida", "🍔"),
    ("Vivienda/Renta", "🏡"),
    ("Ocio", "🕹️"),
    ("Transporte", "🚌"),
    ("Salud", "❤️‍🩹"),
    ("Servicios", "💡"),
    ("Otro", "🤷"),
]

FALLBACK_EMOJI = {
    CategoryKind.INCOME: "💰",
    CategoryKind.EXPENSE: "💸",
}

COLLECTIONS = {
    CategoryKind.INCOME: INCOME_CATEGORIES,
    CategoryKind.EXPENSE: EXPENSE_CATEGORIES,
}


class CategoryService(DomainService):
    """Manage the user's income and expense category lists."""

    def _path(self, kind: CategoryKind, user_id: str) -> str:
        return self._collection(COLLECTIONS[CategoryKind(kind)], user_id)

    async def list(self, kind: CategoryKind) -> list[Category]:
        """Categories of one kind, in display order."""
        user_id = self._user_id()
        documents = await self._store.list(self._path(kind, user_id), order_by="order")
        return [Category.from_document(document) for document in documents]

    async def add(self, kind: CategoryKind, name: str, emoji: Optional[str] = None) -> Category:
        """Append a category at the end of its list."""
        user_id = self._user_id()
        self._validator.ensure_valid(self._validator.validate_name(name, max_length=50))

        existing = await self.list(kind)
        category = Category(name=name, emoji=emoji or "🏷️", order=len(existing))
        category_id = await self._store.push(self._path(kind, user_id), category.to_document())
        category = category.model_copy(update={"id": category_id})

        await self._audit(user_id, kind, category_id, {"action": "added", "name": category.name})
        return category

    async def update(
        self,
        kind: CategoryKind,
        category_id: str,
        name: Optional[str] = None,
        emoji: Optional[str] = None,
    ) -> Category:
        user_id = self._user_id()
        if name is not None:
            self._validator.ensure_valid(self._validator.validate_name(name, max_length=50))

        path = self._record(COLLECTIONS[CategoryKind(kind)], user_id, category_id)
        document = await self._store.get(path)
        if document is None:
            raise NotFoundError("category", category_id)

        changes = {}
        if name is not None:
            changes["name"] = name.strip()
        if emoji:
            changes["emoji"] = emoji
        category = Category.from_document(document).model_copy(update=changes)
        if changes:
            await self._store.update(path, changes)
            await self._audit(user_id, kind, category_id, {"action": "updated", **changes})
        return category

    async def delete(self, kind: CategoryKind, category_id: str) -> None:
        user_id = self._user_id()
        path = self._record(COLLECTIONS[CategoryKind(kind)], user_id, category_id)
        if await self._store.get(path) is None:
            raise NotFoundError("category", category_id)

        await self._store.remove(path)
        await self._audit(user_id, kind, category_id, {"action": "deleted"})

    async def reorder(self, kind: CategoryKind, from_index: int, to_index: int) -> List[Category]:
        """
        Swap the display positions of two categories.

        Indexes refer to the list as returned by list(kind); the two
        categories take each other's index as their new order. Moving
        past either end of the list is a no-op.

        Raises:
            ValidationError: If from_index does not name a category
        """
        user_id = self._user_id()
        categories = await self.list(kind)

        if not 0 <= from_index < len(categories):
            self._validator.ensure_valid([ValidationIssue(
                field="from_index",
                issue_type="out_of_range",
                message=f"No category at position {from_index}",
            )])
        if not 0 <= to_index < len(categories) or from_index == to_index:
            return categories

        first, second = categories[from_index], categories[to_index]
        collection = COLLECTIONS[CategoryKind(kind)]
        first_moved = first.model_copy(update={"order": to_index})
        second_moved = second.model_copy(update={"order": from_index})
        await self._store.atomic_update({
            self._record(collection, user_id, first.id): first_moved.to_document(),
            self._record(collection, user_id, second.id): second_moved.to_document(),
        })

        await self._audit(user_id, kind, first.id, {
            "action": "reordered",
            "swapped_with": second.id,
        })
        return await self.list(kind)

    async def seed_defaults(self) -> int:
        """
        Write the default category lists for a user who has none yet.

        Each kind is seeded independently. Returns how many categories
        were written.
        """
        user_id = self._user_id()
        written = 0
        defaults = {
            CategoryKind.INCOME: DEFAULT_INCOME_CATEGORIES,
            CategoryKind.EXPENSE: DEFAULT_EXPENSE_CATEGORIES,
        }
        for kind, entries in defaults.items():
            if await self.list(kind):
                continue
            for order, (name, emoji) in enumerate(entries):
                category = Category(name=name, emoji=emoji, order=order)
                await self._store.push(self._path(kind, user_id), category.to_document())
                written += 1
        return written

    async def details(self, kind: CategoryKind, name: str) -> Category:
        """
        Resolve a category name stored on an income or expense.

        Unknown names (e.g. a category deleted since) resolve to a
        placeholder with the kind's fallback emoji.
        """
        for category in await self.list(kind):
            if category.name == name:
                return category
        return Category(name=name, emoji=FALLBACK_EMOJI[CategoryKind(kind)])

    async def _audit(self, user_id: str, kind: CategoryKind, category_id: str, details: dict) -> None:
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.CATEGORY_CHANGED,
                user_id=user_id,
                entity_type=f"{CategoryKind(kind).value}_category",
                entity_id=category_id,
                details=details,
            )
