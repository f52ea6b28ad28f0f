from fastapi import APIRouter

from catalog.api.v1.endpoints import categories, audit_logs

api_router = APIRouter()
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit-logs"])
