from __future__ import annotations
from typing import Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from catalog.models import Product


class ProductRepository:
    """Read-only product lookups needed by the category subsystem"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def has_products(self, category_id: int) -> bool:
        result = await self.db.execute(
            select(Product.id).where(Product.category_id == category_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def counts_by_category(self, category_ids: Iterable[int] | None = None) -> dict[int, int]:
        """Product count per category id; categories without products are omitted"""
        query = (
            select(Product.category_id, func.count(Product.id))
            .where(Product.category_id.is_not(None))
            .group_by(Product.category_id)
        )
        if category_ids is not None:
            ids = list(category_ids)
            if not ids:
                return {}
            query = query.where(Product.category_id.in_(ids))
        result = await self.db.execute(query)
        return {category_id: count for category_id, count in result.all()}
