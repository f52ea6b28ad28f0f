from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.exceptions import (
    CategoryNotFoundError,
    DuplicateCategoryNameError,
    InvalidCategoryNameError,
)
from catalog.models.category import Category, DeleteOutcome
from catalog.repositories.category_repository import CategoryRepository
from catalog.repositories.product_repository import ProductRepository
from catalog.schemas.category import CategoryTreeNode
from catalog.services.audit_service import AuditService
from catalog.services.category_tree import (
    ancestor_path,
    build_category_tree,
    ensure_valid_parent,
    flatten_category_tree,
)

logger = logging.getLogger(__name__)

# Passing this as a parent id means "top-level categories"
ROOT_PARENT_ID = 0

NAME_MAX_LENGTH = 100

_UPDATABLE_FIELDS = ("name", "description", "parent_id", "is_active")


def normalize_name(name: str) -> str:
    """Trim a category name and reject blank or over-long ones"""
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidCategoryNameError("Category name must not be empty")
    if len(cleaned) > NAME_MAX_LENGTH:
        raise InvalidCategoryNameError(
            f"Category name must be at most {NAME_MAX_LENGTH} characters"
        )
    return cleaned


class CategoryService:
    """
    The only component allowed to change categories.

    Holds no state between calls. Every write runs as one unit on the
    request's session: checks, the change and its audit row are committed
    together, and nothing is written when a check fails.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = CategoryRepository(db)
        self.product_repository = ProductRepository(db)
        self.audit = AuditService(db)

    # ------------------------------------------------------------------ reads

    async def list_categories(self, include_inactive: bool = False) -> List[Category]:
        return await self.repository.list(include_inactive=include_inactive)

    async def get_category(self, category_id: int) -> Category:
        category = await self.repository.get(category_id)
        if not category:
            raise CategoryNotFoundError(category_id)
        return category

    async def get_children(self, parent_id: int, include_inactive: bool = False) -> List[Category]:
        """Direct children only; ``ROOT_PARENT_ID`` lists the top-level categories"""
        if parent_id == ROOT_PARENT_ID:
            return await self.repository.list_roots(include_inactive=include_inactive)
        await self.get_category(parent_id)
        return await self.repository.list_children(parent_id, include_inactive=include_inactive)

    async def get_tree(self, include_inactive: bool = False) -> List[CategoryTreeNode]:
        """Root nodes of the category forest, rebuilt from the current rows"""
        categories = await self.repository.list(include_inactive=include_inactive)
        counts = await self.product_repository.counts_by_category()
        return build_category_tree(categories, counts)

    async def get_options(self, include_inactive: bool = False) -> List[CategoryTreeNode]:
        """The tree in display order, each node carrying its depth (for parent pickers)"""
        return list(flatten_category_tree(await self.get_tree(include_inactive=include_inactive)))

    async def get_path(self, category_id: int) -> List[Category]:
        """The category's ancestors from the root down, ending with the category itself"""
        categories = {c.id: c for c in await self.repository.list(include_inactive=True)}
        if category_id not in categories:
            raise CategoryNotFoundError(category_id)
        parent_of = {cid: c.parent_id for cid, c in categories.items()}
        return [categories[cid] for cid in ancestor_path(category_id, parent_of)]

    async def product_counts(self, categories: List[Category]) -> dict[int, int]:
        return await self.product_repository.counts_by_category(c.id for c in categories)

    # ----------------------------------------------------------------- writes

    async def create_category(
        self,
        name: str,
        description: str | None = None,
        parent_id: int | None = None,
        *,
        actor_id: int | None = None,
    ) -> Category:
        name = normalize_name(name)
        if await self.repository.exists_by_name(name):
            raise DuplicateCategoryNameError(name)

        if parent_id is not None and not await self.repository.get(parent_id):
            raise CategoryNotFoundError(parent_id, what="Parent category")

        category = Category(
            name=name,
            description=description,
            parent_id=parent_id,
            is_active=True,
        )
        async with self._unit_of_work(name):
            await self.repository.add(category)
            await self.audit.log_category_action(
                actor_id, "create", category.id,
                {"name": name, "parent_id": parent_id},
            )
        await self.db.refresh(category)
        logger.info("Created category %s (%r) under parent %s", category.id, name, parent_id)
        return category

    async def update_category(
        self,
        category_id: int,
        *,
        actor_id: int | None = None,
        **changes: Any,
    ) -> Category:
        """
        Apply a partial update. Only keys present in ``changes`` are touched:
        ``name``, ``description``, ``parent_id`` (``None`` moves the category
        to the top level) and ``is_active``.
        """
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown category fields: {', '.join(sorted(unknown))}")

        if changes.get("name") is not None:
            changes["name"] = normalize_name(changes["name"])

        category = await self.repository.get(category_id, for_update=True)
        if not category:
            raise CategoryNotFoundError(category_id)

        new_name = changes.get("name")
        if new_name is not None and new_name != category.name:
            if await self.repository.exists_by_name(new_name, exclude_id=category.id):
                raise DuplicateCategoryNameError(new_name)

        new_parent_id = changes.get("parent_id")
        if new_parent_id is not None:
            parent_of = await self.repository.parent_map(for_update=True)
            ensure_valid_parent(category.id, new_parent_id, parent_of)
            if new_parent_id not in parent_of:
                raise CategoryNotFoundError(new_parent_id, what="Parent category")

        # All checks passed; nothing has been modified before this point
        applied = {}
        for field in _UPDATABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field in ("name", "is_active") and value is None:
                continue
            if getattr(category, field) != value:
                applied[field] = {"from": getattr(category, field), "to": value}
                setattr(category, field, value)

        if not applied:
            return category

        final_name = category.name
        async with self._unit_of_work(final_name, exclude_id=category_id):
            await self.repository.add(category)
            await self.audit.log_category_action(actor_id, "update", category_id, applied)
        await self.db.refresh(category)
        logger.info("Updated category %s: %s", category_id, ", ".join(applied))
        return category

    async def delete_category(self, category_id: int, *, actor_id: int | None = None) -> DeleteOutcome:
        """
        Remove a category if nothing depends on it.

        A category with products is deactivated instead. A category with child
        categories is left untouched and ``HAS_CHILDREN`` is returned; children
        are never reparented or deleted along with it.
        """
        category = await self.repository.get(category_id, for_update=True)
        if not category:
            raise CategoryNotFoundError(category_id)

        if await self.product_repository.has_products(category_id):
            if category.is_active:
                category.is_active = False
                async with self._unit_of_work():
                    await self.repository.add(category)
                    await self.audit.log_category_action(
                        actor_id, "deactivate", category_id,
                        {"name": category.name, "reason": "has products"},
                    )
                await self.db.refresh(category)
            logger.info("Category %s has products; deactivated instead of deleting", category_id)
            return DeleteOutcome.DEACTIVATED

        child_count = await self.repository.count_children(category_id)
        if child_count > 0:
            logger.info("Refused to delete category %s with %s children", category_id, child_count)
            return DeleteOutcome.HAS_CHILDREN

        name = category.name
        async with self._unit_of_work():
            await self.audit.log_category_action(actor_id, "delete", category_id, {"name": name})
            await self.repository.delete(category)
        logger.info("Deleted category %s (%r)", category_id, name)
        return DeleteOutcome.DELETED

    @asynccontextmanager
    async def _unit_of_work(
        self,
        name: str | None = None,
        *,
        exclude_id: int | None = None,
    ) -> AsyncIterator[None]:
        """
        Flush and commit the staged writes as one unit. A unique-name violation
        (another writer took ``name`` after our check) is reported as a
        duplicate; any other integrity error is re-raised after rollback.
        """
        try:
            yield
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if name is not None and await self.repository.exists_by_name(name, exclude_id=exclude_id):
                logger.warning("Lost a race for category name %r", name)
                raise DuplicateCategoryNameError(name) from exc
            raise
