from contextlib import asynccontextmanager
from typing import Optional
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .core.audit import AuditSink, build_audit_sink
from .core.config import Settings, get_settings
from .core.database import Database
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging

# Import all routers
from .routers import (
    health, operations, sites, students, teachers, courses,
    enrollments, payments, inventory, classrooms, roles
)

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    audit_sink: Optional[AuditSink] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        logger.info(f"Starting EduOps API ({settings.environment})")

        db = database or Database(settings)
        db.open()
        if settings.is_sqlite:
            await db.create_all()
            logger.info("SQLite schema created")

        app.state.settings = settings
        app.state.db = db
        app.state.audit_sink = audit_sink or build_audit_sink(settings)

        yield

        logger.info("Shutting down EduOps API")
        await app.state.audit_sink.close()
        await db.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="EduOps API - Transactional School Operations",
        description="Enrollments, grading, payments, inventory and course staffing with atomic operations",
        version=__version__,
        lifespan=lifespan
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    register_exception_handlers(app)

    # Include all routers
    app.include_router(health.router)
    app.include_router(operations.router)
    app.include_router(sites.router)
    app.include_router(students.router)
    app.include_router(teachers.router)
    app.include_router(courses.router)
    app.include_router(enrollments.router)
    app.include_router(payments.router)
    app.include_router(inventory.router)
    app.include_router(classrooms.router)
    app.include_router(roles.router)

    @app.get("/")
    async def root():
        return {
            "message": "EduOps API",
            "version": __version__,
            "status": "active"
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("eduops.main:app", host="0.0.0.0", port=8000, reload=True)
