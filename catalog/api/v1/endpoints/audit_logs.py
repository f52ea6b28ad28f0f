from fastapi import APIRouter, Query
from datetime import datetime
from typing import Optional

from catalog.core.deps import DBSessionDep
from catalog.repositories.audit_repository import AuditRepository
from catalog.schemas.audit_log import AuditLogOut


router = APIRouter()


@router.get("", response_model=list[AuditLogOut])
async def list_audit_logs(
    db: DBSessionDep,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user_id: Optional[int] = Query(None),
    entity: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    """
    List audit logs, newest first
    Supports filtering by user, entity, action, and date range
    """
    return await AuditRepository(db).list(
        limit=limit,
        offset=offset,
        user_id=user_id,
        entity=entity,
        entity_id=entity_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/count")
async def count_audit_logs(
    db: DBSessionDep,
    user_id: Optional[int] = Query(None),
    entity: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
):
    count = await AuditRepository(db).count(
        user_id=user_id, entity=entity, entity_id=entity_id, action=action
    )
    return {"count": count}
