from typing import Annotated
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartpoint.database.database import get_async_db
from smartpoint.dependencies.userDependencies import user_dependency
from smartpoint.modules.access.policy import Scope, resolve_scope
from smartpoint.modules.auth.models import User


async def get_scope(
    current_user: user_dependency,
    db: AsyncSession = Depends(get_async_db)
) -> Scope:
    """Resolve the caller's scope before any Item/Sale query runs."""
    manager = None
    if current_user.is_cashier and current_user.manager_id is not None:
        result = await db.execute(select(User).where(User.id == current_user.manager_id))
        manager = result.scalar_one_or_none()
    return resolve_scope(current_user, manager)


scope_dependency = Annotated[Scope, Depends(get_scope)]
