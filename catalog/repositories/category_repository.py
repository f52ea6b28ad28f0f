from __future__ import annotations
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from catalog.models import Category


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, include_inactive: bool = False) -> List[Category]:
        """List all categories ordered by name, optionally including inactive ones"""
        query = select(Category)
        if not include_inactive:
            query = query.where(Category.is_active == True)  # noqa: E712
        query = query.order_by(Category.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_roots(self, include_inactive: bool = False) -> List[Category]:
        """Top-level categories only"""
        query = select(Category).where(Category.parent_id.is_(None))
        if not include_inactive:
            query = query.where(Category.is_active == True)  # noqa: E712
        query = query.order_by(Category.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_children(self, parent_id: int, include_inactive: bool = False) -> List[Category]:
        """Direct children of a category"""
        query = select(Category).where(Category.parent_id == parent_id)
        if not include_inactive:
            query = query.where(Category.is_active == True)  # noqa: E712
        query = query.order_by(Category.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_children(self, parent_id: int) -> int:
        """Count direct children, active or not"""
        result = await self.db.execute(
            select(func.count(Category.id)).where(Category.parent_id == parent_id)
        )
        return result.scalar_one() or 0

    async def get(self, category_id: int, *, for_update: bool = False) -> Category | None:
        """Get category by ID"""
        query = select(Category).where(Category.id == category_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def exists_by_name(self, name: str, *, exclude_id: int | None = None) -> bool:
        query = select(Category.id).where(Category.name == name)
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def parent_map(self, *, for_update: bool = False) -> dict[int, int | None]:
        """Snapshot of ``id -> parent_id`` for every category"""
        query = select(Category.id, Category.parent_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return {row.id: row.parent_id for row in result.all()}

    async def add(self, category: Category) -> Category:
        """Stage a new or modified category and flush it so it gets an id"""
        self.db.add(category)
        await self.db.flush()
        return category

    async def delete(self, category: Category) -> None:
        """Stage a permanent delete"""
        await self.db.delete(category)
        await self.db.flush()
