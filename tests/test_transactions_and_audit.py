# tests/test_transactions_and_audit.py
from uuid import uuid4

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from eduops.core.audit import AuditRecord, HttpAuditSink, NullAuditSink, build_audit_sink, emit_safely
from eduops.core.config import Settings
from eduops.core.database import Database
from eduops.core.exceptions import ContentionError
from eduops.core.transactions import atomic, is_contention, is_unique_violation, lock_row
from eduops.models import Enrollment, InventoryItem, Student
from eduops.models.enums import RecordStatus
from eduops.schemas.operation_schemas import OperationResult
from eduops.services import EnrollmentService, InventoryService
from eduops.services.transactional_service import INVALID_REFERENCE

from .conftest import FailingSink, RecordingSink

pytestmark = pytest.mark.anyio


class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__("lock error")
        self.sqlstate = sqlstate


@pytest.mark.parametrize(
    "orig, expected",
    [
        (_PgError("55P03"), True),
        (_PgError("40P01"), True),
        (_PgError("40001"), True),
        (_PgError("23505"), False),
        (Exception("database is locked"), True),
        (Exception("disk I/O error"), False),
    ],
)
def test_is_contention(orig, expected):
    assert is_contention(OperationalError("SELECT 1", {}, orig)) is expected


@pytest.mark.parametrize(
    "orig, expected",
    [
        (_PgError("23505"), True),
        (_PgError("23503"), False),
        (_PgError("23514"), False),
        (Exception("UNIQUE constraint failed: students.national_id"), True),
        (Exception("FOREIGN KEY constraint failed"), False),
    ],
)
def test_is_unique_violation(orig, expected):
    assert is_unique_violation(IntegrityError("INSERT", {}, orig)) is expected


async def test_foreign_key_failure_is_not_reported_as_duplicate(session, settings, seed):
    site = await seed.site()
    service = EnrollmentService(session, settings=settings)

    async def orphan_enrollment():
        session.add(Enrollment(
            student_id=uuid4(), course_id=uuid4(), site_id=site.id,
            academic_period="2025-I", status=RecordStatus.ACTIVE,
        ))
        await session.flush()
        return OperationResult.ok("created")

    result = await service.run_operation("create", orphan_enrollment, duplicate_message="Already enrolled")

    assert result.success is False
    assert result.message == INVALID_REFERENCE


async def test_unique_failure_reports_duplicate_message(session, settings, seed):
    site = await seed.site()
    service = EnrollmentService(session, settings=settings)

    async def twin_students():
        for name in ("Ana", "Eva"):
            session.add(Student(
                site_id=site.id, national_id="40404040", first_name=name, last_name="Soto",
                status=RecordStatus.ACTIVE,
            ))
        await session.flush()
        return OperationResult.ok("created")

    result = await service.run_operation("create", twin_students, duplicate_message="Already registered")

    assert result.success is False
    assert result.message == "Already registered"


async def test_lock_timeout_surfaces_as_contention(settings, database, seed):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=3)

    impatient = Database(settings.model_copy(update={"lock_timeout_ms": 200})).open()
    sink = RecordingSink()
    try:
        async with database.session() as holder:
            async with atomic(holder):
                await lock_row(holder, InventoryItem, item.id)
                async with impatient.session() as s:
                    with pytest.raises(ContentionError) as exc_info:
                        await InventoryService(s, settings=settings, audit=sink).sell(item.id, student.id, 1)
    finally:
        await impatient.close()

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail["retryable"] is True
    assert exc_info.value.headers["Retry-After"] == "1"
    assert sink.records[-1].success is False

    # Nothing was written by the failed attempt
    async with database.session() as s:
        assert (await s.get(InventoryItem, item.id)).stock == 3


async def test_open_read_does_not_block_writers(settings, database, seed):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=3)

    impatient = Database(settings.model_copy(update={"lock_timeout_ms": 200})).open()
    try:
        async with database.session() as reader:
            await reader.execute(select(InventoryItem.stock).where(InventoryItem.id == item.id))
            assert reader.in_transaction()
            async with impatient.session() as s:
                result = await InventoryService(s, settings=settings).sell(item.id, student.id, 1)
    finally:
        await impatient.close()

    assert result.success is True
    assert result.data["remaining_stock"] == 2


async def test_audit_failure_does_not_change_outcome(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=3)
    sink = FailingSink()

    result = await InventoryService(session, settings=settings, audit=sink).sell(item.id, student.id, 1)

    assert result.success is True
    assert sink.calls == 1


async def test_rejections_are_audited(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=0)
    sink = RecordingSink()

    await InventoryService(session, settings=settings, audit=sink, actor="kc-9").sell(item.id, student.id, 1)

    record = sink.records[-1]
    assert record.module == "inventory"
    assert record.success is False
    assert record.actor == "kc-9"
    assert record.metadata["reason"] == "insufficient_stock"
    assert record.metadata["item_id"] == str(item.id)


def _record() -> AuditRecord:
    return AuditRecord(action_type="payment", module="payments", description="Payment processed", success=True)


async def test_http_sink_retries_until_accepted():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503 if len(calls) < 3 else 201)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    sink = HttpAuditSink("http://logs.test/activity", max_attempts=3, client=client)

    await sink.emit(_record())
    await sink.close()

    assert len(calls) == 3
    body = calls[-1].read()
    assert b'"action":"log"' in body.replace(b" ", b"")
    assert b'"module":"payments"' in body.replace(b" ", b"")


async def test_http_sink_gives_up_and_emit_safely_swallows():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    sink = HttpAuditSink("http://logs.test/activity", max_attempts=2, client=client)

    with pytest.raises(RuntimeError):
        await sink.emit(_record())
    await emit_safely(sink, _record())
    await sink.close()


def test_build_audit_sink():
    assert isinstance(build_audit_sink(Settings(audit_sink="none")), NullAuditSink)
    with pytest.raises(ValueError):
        build_audit_sink(Settings(audit_sink="http", audit_url=None))
