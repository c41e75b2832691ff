# eduops/routers/sites.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..schemas.entity_schemas import AcademicCycleCreate, AcademicCycleOut, SiteCreate, SiteOut, SiteUpdate
from ..services import AcademicCycleService, SiteService

router = APIRouter(prefix="/api/v1", tags=["Sites and Academic Cycles"])


@router.get("/sites", response_model=List[SiteOut])
async def list_sites(active_only: bool = Query(False), db: AsyncSession = Depends(get_db)):
    service = SiteService(db)
    if active_only:
        return await service.get_multi(is_active=True)
    return await service.get_multi()


@router.post("/sites", response_model=SiteOut, status_code=201)
async def create_site(body: SiteCreate, db: AsyncSession = Depends(get_db)):
    return await SiteService(db).create(body.model_dump())


@router.patch("/sites/{site_id}", response_model=SiteOut)
async def update_site(site_id: UUID, body: SiteUpdate, db: AsyncSession = Depends(get_db)):
    site = await SiteService(db).update(site_id, body.model_dump(exclude_unset=True))
    if not site:
        raise NotFoundError("Site", site_id)
    return site


@router.get("/academic-cycles", response_model=List[AcademicCycleOut])
async def list_cycles(active_only: bool = Query(False), db: AsyncSession = Depends(get_db)):
    service = AcademicCycleService(db)
    if active_only:
        return await service.get_multi(is_active=True)
    return await service.get_multi()


@router.post("/academic-cycles", response_model=AcademicCycleOut, status_code=201)
async def create_cycle(body: AcademicCycleCreate, db: AsyncSession = Depends(get_db)):
    return await AcademicCycleService(db).create(body.model_dump())
