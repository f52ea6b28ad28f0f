from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import Optional
from catalog.models.audit_log import AuditLog


class AuditRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, log: AuditLog) -> AuditLog:
        """Stage an audit row in the caller's transaction"""
        self.db.add(log)
        await self.db.flush()
        return log

    @staticmethod
    def _conditions(
        user_id: Optional[int] = None,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list:
        conditions = []
        if user_id is not None:
            conditions.append(AuditLog.user_id == user_id)
        if entity:
            conditions.append(AuditLog.entity == entity)
        if entity_id:
            conditions.append(AuditLog.entity_id == entity_id)
        if action:
            conditions.append(AuditLog.action == action)
        if start_date:
            conditions.append(AuditLog.created_at >= start_date)
        if end_date:
            conditions.append(AuditLog.created_at <= end_date)
        return conditions

    async def list(
        self,
        limit: int = 100,
        offset: int = 0,
        **filters,
    ) -> list[AuditLog]:
        """List audit logs, newest first, with optional filtering"""
        query = select(AuditLog)
        conditions = self._conditions(**filters)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(AuditLog.id.desc()).limit(limit).offset(offset)
        res = await self.db.execute(query)
        return list(res.scalars().all())

    async def count(self, **filters) -> int:
        """Count audit logs with optional filtering"""
        query = select(func.count(AuditLog.id))
        conditions = self._conditions(**filters)
        if conditions:
            query = query.where(and_(*conditions))
        res = await self.db.execute(query)
        return res.scalar() or 0
