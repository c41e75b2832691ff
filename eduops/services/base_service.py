# eduops/services/base_service.py
"""Base service with common CRUD operations."""
from datetime import date, timedelta
from typing import Type, Any, Dict, Optional, TypeVar, Generic, FrozenSet
import logging

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import DuplicateRecordError, ProtectedFieldError, ValidationError
from ..core.transactions import atomic, is_unique_violation

logger = logging.getLogger(__name__)

# Define generic type
T = TypeVar('T')


class BaseService(Generic[T]):
    # Fields maintained only by the transactional operations
    protected_fields: FrozenSet[str] = frozenset()
    # Fields fixed once the record exists
    immutable_fields: FrozenSet[str] = frozenset()
    duplicate_message: str = "Record already exists"

    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    def _check_protected(self, obj_in: Dict, updating: bool = False) -> None:
        blocked = self.protected_fields.intersection(obj_in)
        if updating:
            blocked |= self.immutable_fields.intersection(obj_in)
        if blocked:
            raise ProtectedFieldError(blocked)

    def _constraint_error(self, exc: IntegrityError) -> Exception:
        if is_unique_violation(exc):
            return DuplicateRecordError(self.duplicate_message)
        return ValidationError("Invalid reference: a related record does not exist")

    def _apply_filters(self, stmt, include_deleted: bool, filters: Dict[str, Any]):
        if hasattr(self.model, 'is_deleted') and not include_deleted:
            stmt = stmt.where(self.model.is_deleted == False)
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        return stmt

    async def get(self, id: Any) -> Optional[T]:
        stmt = select(self.model).where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_multi(self, skip: int = 0, limit: int = 100, include_deleted: bool = False, **filters):
        stmt = select(self.model).offset(skip).limit(limit)
        stmt = self._apply_filters(stmt, include_deleted, filters)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_paginated(
        self,
        page: int = 1,
        size: int = 20,
        include_deleted: bool = False,
        order_by: str = None,
        sort: str = "asc",
        date_field: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        **filters
    ):
        """Get paginated results with optional filtering and date range"""
        offset = (page - 1) * size

        stmt = self._apply_filters(select(self.model), include_deleted, filters)
        count_stmt = self._apply_filters(select(func.count()).select_from(self.model), include_deleted, filters)

        # Optional date range on a date/datetime column
        if date_field and hasattr(self.model, date_field):
            column = getattr(self.model, date_field)
            if date_from:
                stmt = stmt.where(column >= date_from)
                count_stmt = count_stmt.where(column >= date_from)
            if date_to:
                # Inclusive of the whole end day
                end = date_to + timedelta(days=1)
                stmt = stmt.where(column < end)
                count_stmt = count_stmt.where(column < end)

        count_result = await self.db.execute(count_stmt)
        total = count_result.scalar()

        if order_by and hasattr(self.model, order_by):
            order_field = getattr(self.model, order_by)
            if sort.lower() == "desc":
                stmt = stmt.order_by(order_field.desc())
            else:
                stmt = stmt.order_by(order_field.asc())
        else:
            stmt = stmt.order_by(self.model.created_at.desc())

        stmt = stmt.offset(offset).limit(size)
        result = await self.db.execute(stmt)
        items = result.scalars().all()

        return {
            "items": items,
            "total": total,
            "page": page,
            "size": size,
            "total_pages": (total + size - 1) // size,
            "has_next": page * size < total,
            "has_previous": page > 1,
        }

    async def create(self, obj_in: Dict) -> T:
        self._check_protected(obj_in)
        obj = self.model(**obj_in)
        try:
            async with atomic(self.db):
                self.db.add(obj)
        except IntegrityError as e:
            logger.info(f"{self.model.__name__} create rejected: {e.orig}")
            raise self._constraint_error(e)
        await self.db.refresh(obj)
        return obj

    async def update(self, id: Any, obj_in: Dict) -> Optional[T]:
        self._check_protected(obj_in, updating=True)
        try:
            async with atomic(self.db):
                obj = await self.get(id)
                if not obj:
                    return None
                for key, value in obj_in.items():
                    setattr(obj, key, value)
        except IntegrityError as e:
            logger.info(f"{self.model.__name__} update rejected: {e.orig}")
            raise self._constraint_error(e)
        await self.db.refresh(obj)
        return obj

    async def set_status(self, id: Any, status) -> Optional[T]:
        """Soft toggle of the status field; records are deactivated, not deleted"""
        async with atomic(self.db):
            obj = await self.get(id)
            if not obj:
                return None
            obj.status = status
        await self.db.refresh(obj)
        return obj
