# tests/conftest.py
from __future__ import annotations

import logging
import sys
from datetime import date
from decimal import Decimal
from typing import List, Optional

import pytest
from httpx import AsyncClient, ASGITransport

from eduops.core.audit import AuditRecord
from eduops.core.config import Settings
from eduops.core.database import Database
from eduops.main import create_app
from eduops.models import (
    AcademicCycle, Classroom, Course, InventoryItem, PaymentPlan, Site, Student, Teacher,
)
from eduops.models.enums import RecordStatus


# =========================
# Logging -> stdout
# =========================
@pytest.fixture(scope="session", autouse=True)
def _tests_log_to_stdout():
    root = logging.getLogger()
    if not any(getattr(h, "stream", None) is sys.stdout for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.INFO)


# Make anyio run on asyncio (so our async fixtures work everywhere)
@pytest.fixture(scope="session", autouse=True)
def anyio_backend():
    return "asyncio"


# ==============================================================
# Audit sinks
# ==============================================================

class RecordingSink:
    def __init__(self):
        self.records: List[AuditRecord] = []

    async def emit(self, record: AuditRecord) -> None:
        self.records.append(record)

    async def close(self) -> None:
        return None


class FailingSink:
    def __init__(self):
        self.calls = 0

    async def emit(self, record: AuditRecord) -> None:
        self.calls += 1
        raise RuntimeError("log store unreachable")

    async def close(self) -> None:
        return None


# ==============================================================
# Database
# ==============================================================

@pytest.fixture
def settings(tmp_path) -> Settings:
    # File-backed so concurrent sessions see each other's commits
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'eduops.db'}",
        environment="test",
        audit_sink="none",
        lock_timeout_ms=10000,
    )


@pytest.fixture
async def database(settings):
    db = Database(settings).open()
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture
def audit_sink() -> RecordingSink:
    return RecordingSink()


# ==============================================================
# Seed data
# ==============================================================

class Seeder:
    """Inserts fixture rows, each in its own committed session."""

    def __init__(self, database: Database):
        self.database = database
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def add(self, obj):
        async with self.database.session() as s:
            s.add(obj)
            await s.commit()
        return obj

    async def site(self, name: str = "Sede Central") -> Site:
        return await self.add(Site(name=name, city="Lima"))

    async def student(self, site: Site, status: RecordStatus = RecordStatus.ACTIVE, **kw) -> Student:
        n = self._next()
        return await self.add(Student(
            site_id=site.id,
            national_id=kw.pop("national_id", f"S{n:07d}"),
            first_name=kw.pop("first_name", "Ana"),
            last_name=kw.pop("last_name", f"Quispe {n}"),
            status=status,
            **kw,
        ))

    async def teacher(self, site: Site, status: RecordStatus = RecordStatus.ACTIVE) -> Teacher:
        n = self._next()
        return await self.add(Teacher(
            site_id=site.id,
            national_id=f"T{n:07d}",
            first_name="Luis",
            last_name=f"Rojas {n}",
            status=status,
        ))

    async def course(self, is_active: bool = True, **kw) -> Course:
        n = self._next()
        return await self.add(Course(code=kw.pop("code", f"MAT-{n}"), name=kw.pop("name", "Matemática"), is_active=is_active, **kw))

    async def cycle(self, name: Optional[str] = None) -> AcademicCycle:
        n = self._next()
        return await self.add(AcademicCycle(
            name=name or f"2025-{n}",
            start_date=date(2025, 3, 1),
            end_date=date(2025, 12, 20),
        ))

    async def plan(self, student: Student, cycle: AcademicCycle, name: str = "2025-I Primaria", level: str = "Primaria") -> PaymentPlan:
        return await self.add(PaymentPlan(cycle_id=cycle.id, student_id=student.id, name=name, level=level))

    async def item(self, site: Site, stock: int = 0, unit_price: str = "12.50", is_active: bool = True) -> InventoryItem:
        n = self._next()
        return await self.add(InventoryItem(
            site_id=site.id,
            material_code=f"MAT{n:04d}",
            name="Cuaderno A4",
            material_type="book",
            stock=stock,
            unit_price=Decimal(unit_price),
            is_active=is_active,
        ))

    async def classroom(self, site: Site, cycle: AcademicCycle, section: str = "A", capacity: int = 30) -> Classroom:
        return await self.add(Classroom(
            site_id=site.id, cycle_id=cycle.id, level="Primaria", grade="3", section=section, capacity=capacity
        ))


@pytest.fixture
def seed(database) -> Seeder:
    return Seeder(database)


# ==============================================================
# In-process API client
# ==============================================================

@pytest.fixture
async def client(settings, database, audit_sink):
    app = create_app(settings=settings, database=database, audit_sink=audit_sink)
    # ASGITransport does not drive lifespan events; run them explicitly
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
