# tests/test_inventory.py
import asyncio

import pytest
from sqlalchemy import func, select

from eduops.core.exceptions import ProtectedFieldError
from eduops.models import InventoryItem, InventorySale
from eduops.services import InventoryService
from eduops.services.inventory_service import MAX_STOCK

pytestmark = pytest.mark.anyio


async def _stock(database, item_id) -> int:
    async with database.session() as s:
        return (await s.execute(select(InventoryItem.stock).where(InventoryItem.id == item_id))).scalar()


async def _sales(database, item_id) -> int:
    async with database.session() as s:
        stmt = select(func.count(InventorySale.id)).where(InventorySale.item_id == item_id)
        return (await s.execute(stmt)).scalar()


async def test_sale_decrements_stock(session, settings, seed, database):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=10, unit_price="12.50")

    result = await InventoryService(session, settings=settings).sell(item.id, student.id, 3)

    assert result.success is True
    assert result.data["remaining_stock"] == 7
    assert result.data["total_price"] == 37.5
    assert await _stock(database, item.id) == 7


async def test_insufficient_stock_leaves_item_untouched(session, settings, seed, database):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=2)

    result = await InventoryService(session, settings=settings).sell(item.id, student.id, 3)

    assert result.success is False
    assert result.data == {"reason": "insufficient_stock", "available": 2, "requested": 3}
    assert await _stock(database, item.id) == 2
    assert await _sales(database, item.id) == 0


@pytest.mark.parametrize("quantity", [0, -1])
async def test_non_positive_quantity_is_rejected(session, settings, seed, quantity):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=5)

    result = await InventoryService(session, settings=settings).sell(item.id, student.id, quantity)

    assert result.success is False
    assert result.message == "Quantity must be greater than zero"


async def test_inactive_item_cannot_be_sold(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=5, is_active=False)

    result = await InventoryService(session, settings=settings).sell(item.id, student.id, 1)

    assert result.success is False
    assert result.message == "Inventory item is not active"


async def test_concurrent_buyers_never_oversell(database, settings, seed):
    site = await seed.site()
    students = [await seed.student(site) for _ in range(8)]
    item = await seed.item(site, stock=5)

    async def buy(student):
        async with database.session() as s:
            return await InventoryService(s, settings=settings).sell(item.id, student.id, 1)

    results = await asyncio.gather(*[buy(student) for student in students])

    assert sum(r.success for r in results) == 5
    assert all(r.data["reason"] == "insufficient_stock" for r in results if not r.success)
    assert await _stock(database, item.id) == 0
    assert await _sales(database, item.id) == 5


async def test_restock_adds_units(session, settings, seed, database):
    site = await seed.site()
    item = await seed.item(site, stock=1)
    service = InventoryService(session, settings=settings)

    result = await service.restock(item.id, 9)

    assert result.success is True
    assert result.data["stock"] == 10
    assert (await service.restock(item.id, 0)).success is False
    assert await _stock(database, item.id) == 10


async def test_stock_cannot_be_written_directly(session, settings, seed):
    site = await seed.site()
    item = await seed.item(site, stock=1)
    service = InventoryService(session, settings=settings)

    with pytest.raises(ProtectedFieldError):
        await service.update(item.id, {"stock": 100})
    with pytest.raises(ProtectedFieldError):
        await service.create({
            "site_id": site.id,
            "material_code": "NEW001",
            "name": "Lápiz",
            "material_type": "stationery",
            "stock": 50,
        })


async def test_sale_total_beyond_column_range_is_rejected(session, settings, seed, database):
    site = await seed.site()
    student = await seed.student(site)
    item = await seed.item(site, stock=1000, unit_price="99999999.99")

    result = await InventoryService(session, settings=settings).sell(item.id, student.id, 2)

    assert result.success is False
    assert result.message == "Sale total must not exceed 99999999.99"
    assert await _stock(database, item.id) == 1000
    assert await _sales(database, item.id) == 0


async def test_restock_beyond_stock_range_is_rejected(session, settings, seed, database):
    site = await seed.site()
    item = await seed.item(site, stock=10)

    result = await InventoryService(session, settings=settings).restock(item.id, MAX_STOCK)

    assert result.success is False
    assert result.message == f"Stock must not exceed {MAX_STOCK}"
    assert await _stock(database, item.id) == 10
