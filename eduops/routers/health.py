"""Health check endpoints."""
from fastapi import APIRouter, Request

from .. import __version__

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "EduOps API",
        "version": __version__,
    }


@router.get("/db-health")
async def database_health(request: Request):
    """Database connectivity check"""
    healthy = await request.app.state.db.health_check()
    return {
        "status": "healthy" if healthy else "unhealthy",
        "database": request.app.state.db.engine.dialect.name,
    }
