from typing import Annotated
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.db.session import get_db
from catalog.services.category_service import CategoryService


DBSessionDep = Annotated[AsyncSession, Depends(get_db)]


async def get_actor_id(x_user_id: Annotated[int | None, Header()] = None) -> int | None:
    """
    Id of the acting user, forwarded by the auth gateway in front of this
    service. Only used for the audit trail.
    """
    return x_user_id


ActorIdDep = Annotated[int | None, Depends(get_actor_id)]


def get_category_service(db: DBSessionDep) -> CategoryService:
    return CategoryService(db)


CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
