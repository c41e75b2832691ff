# eduops/services/student_service.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..models.tenant_specific.student import Student


class StudentService(BaseService[Student]):
    # Status changes go through set_status
    protected_fields = frozenset({"status"})
    immutable_fields = frozenset({"national_id"})
    duplicate_message = "A student with this national ID already exists"

    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    async def get_by_national_id(self, national_id: str) -> Optional[Student]:
        stmt = select(self.model).where(self.model.national_id == national_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
