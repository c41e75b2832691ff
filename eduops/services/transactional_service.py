# eduops/services/transactional_service.py
"""Shared plumbing for services that expose transactional operations."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar
import logging

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.audit import AuditRecord, AuditSink, NullAuditSink, emit_safely
from ..core.config import Settings, get_settings
from ..core.exceptions import ContentionError
from ..core.transactions import Rejected, atomic, is_unique_violation
from ..models.shared.site import Site
from ..schemas.operation_schemas import OperationResult
from .base_service import BaseService

logger = logging.getLogger(__name__)

T = TypeVar('T')

INVALID_REFERENCE = "The operation refers to a record that does not exist or breaks a data rule"
OUT_OF_RANGE = "A value is outside the range the store can hold"
# Numeric(10, 2) money columns
MAX_AMOUNT = Decimal("99999999.99")


class TransactionalService(BaseService[T]):
    module: str = "core"

    def __init__(
        self,
        model: Type[T],
        db: AsyncSession,
        settings: Optional[Settings] = None,
        audit: Optional[AuditSink] = None,
        actor: Optional[str] = None,
    ):
        super().__init__(model, db)
        self.settings = settings or get_settings()
        self.audit = audit or NullAuditSink()
        self.actor = actor

    async def run_operation(
        self,
        action_type: str,
        operation: Callable[[], Awaitable[OperationResult]],
        duplicate_message: str,
        metadata: Optional[dict] = None,
    ) -> OperationResult:
        """Run ``operation`` as one all-or-nothing unit and report the outcome.

        Rejections and constraint violations come back as unsuccessful results;
        only a uniqueness violation reports ``duplicate_message``.
        Contention and infrastructure errors propagate after rollback.
        """
        try:
            async with atomic(self.db):
                result = await operation()
        except Rejected as e:
            logger.info(f"{self.module}.{action_type} rejected: {e.message}")
            result = OperationResult.rejected(e.message, e.data)
        except IntegrityError as e:
            logger.info(f"{self.module}.{action_type} hit a constraint: {e.orig}")
            if is_unique_violation(e):
                result = OperationResult.rejected(duplicate_message)
            else:
                result = OperationResult.rejected(INVALID_REFERENCE)
        except DataError as e:
            logger.info(f"{self.module}.{action_type} sent an out-of-range value: {e.orig}")
            result = OperationResult.rejected(OUT_OF_RANGE)
        except ContentionError:
            await self._record(action_type, False, "Lock wait exceeded", metadata)
            raise

        await self._record(action_type, result.success, result.message, {**(metadata or {}), **(result.data or {})})
        return result

    async def _require_site(self, site_id) -> Site:
        site = await self.db.get(Site, site_id)
        if site is None or site.is_deleted:
            raise Rejected("Site not found")
        return site

    async def _record(self, action_type: str, success: bool, description: str, metadata: Optional[dict]) -> None:
        record = AuditRecord(
            actor=self.actor,
            action_type=action_type,
            module=self.module,
            description=description,
            success=success,
            metadata={k: _plain(v) for k, v in (metadata or {}).items()},
        )
        await emit_safely(self.audit, record)


def _plain(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def quantize(value: Decimal, places: int) -> Decimal:
    """Round half-up to a fixed number of decimal places"""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
