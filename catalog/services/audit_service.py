import json
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from catalog.models.audit_log import AuditLog
from catalog.repositories.audit_repository import AuditRepository


class AuditService:
    """Service for recording audit events"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = AuditRepository(db)

    async def log_action(
        self,
        user_id: Optional[int],
        action: str,
        entity: str,
        entity_id: str,
        details: Optional[dict[str, Any]] = None
    ) -> AuditLog:
        """
        Record an audit action. The row joins the caller's transaction and is
        committed (or rolled back) together with the change it describes.

        Args:
            user_id: ID of the acting user (None for system actions)
            action: Action type (e.g., 'create', 'update', 'delete', 'deactivate')
            entity: Entity type (e.g., 'category')
            entity_id: ID of the entity being acted upon
            details: Optional dictionary with additional details about the action
        """
        details_str = json.dumps(details, ensure_ascii=False, default=str) if details else None

        log = AuditLog(
            user_id=user_id,
            action=action,
            entity=entity,
            entity_id=str(entity_id),
            details=details_str
        )

        return await self.repository.add(log)

    async def log_category_action(
        self,
        user_id: Optional[int],
        action: str,
        category_id: int,
        details: Optional[dict[str, Any]] = None
    ) -> AuditLog:
        """Log a category-related action"""
        return await self.log_action(
            user_id=user_id,
            action=action,
            entity='category',
            entity_id=str(category_id),
            details=details
        )
