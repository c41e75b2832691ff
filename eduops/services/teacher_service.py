# eduops/services/teacher_service.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..models.tenant_specific.teacher import Teacher


class TeacherService(BaseService[Teacher]):
    protected_fields = frozenset({"status"})
    immutable_fields = frozenset({"national_id"})
    duplicate_message = "A teacher with this national ID already exists"

    def __init__(self, db: AsyncSession):
        super().__init__(Teacher, db)

    async def get_by_national_id(self, national_id: str) -> Optional[Teacher]:
        stmt = select(self.model).where(self.model.national_id == national_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
