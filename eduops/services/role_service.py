# eduops/services/role_service.py
"""Lookup against the user/role directory.

Routes that need admin-only access consult this; the transactional
operations themselves trust the caller's authorization.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.enums import AppRole
from ..models.tenant_specific.user_role import UserRole

# Highest privilege first
ROLE_PRECEDENCE = (AppRole.ADMIN, AppRole.TEACHER, AppRole.STUDENT)


class RoleService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_role(self, user_id: str) -> Optional[AppRole]:
        stmt = select(UserRole.role).where(UserRole.user_id == user_id, UserRole.is_deleted == False)
        roles = set((await self.db.execute(stmt)).scalars().all())
        for role in ROLE_PRECEDENCE:
            if role in roles:
                return role
        return None

    async def has_role(self, user_id: str, role: AppRole) -> bool:
        stmt = select(UserRole.id).where(
            UserRole.user_id == user_id,
            UserRole.role == role,
            UserRole.is_deleted == False
        )
        return (await self.db.execute(stmt)).first() is not None
