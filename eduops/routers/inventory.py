# eduops/routers/inventory.py
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..schemas.entity_schemas import InventoryItemCreate, InventoryItemOut, InventoryItemUpdate, InventorySaleOut
from ..schemas.pagination import PaginatedResponse, to_page
from ..services import InventoryService

router = APIRouter(prefix="/api/v1/inventory", tags=["Inventory"])


@router.get("/items", response_model=PaginatedResponse[InventoryItemOut])
async def get_items(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    site_id: Optional[UUID] = Query(None),
    material_type: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    result = await InventoryService(db).get_paginated(
        page=page, size=size, order_by="name", site_id=site_id, material_type=material_type, is_active=is_active
    )
    return to_page(result, InventoryItemOut)


@router.post("/items", response_model=InventoryItemOut, status_code=201)
async def create_item(body: InventoryItemCreate, db: AsyncSession = Depends(get_db)):
    """Create an item with zero stock; stock arrives through the restock operation"""
    return await InventoryService(db).create(body.model_dump())


@router.patch("/items/{item_id}", response_model=InventoryItemOut)
async def update_item(item_id: UUID, body: InventoryItemUpdate, db: AsyncSession = Depends(get_db)):
    item = await InventoryService(db).update(item_id, body.model_dump(exclude_unset=True))
    if not item:
        raise NotFoundError("Inventory item", item_id)
    return item


@router.get("/sales", response_model=List[InventorySaleOut])
async def get_sales(
    item_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    return await InventoryService(db).get_sales(item_id=item_id, student_id=student_id)
