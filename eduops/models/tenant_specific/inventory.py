# eduops/models/tenant_specific/inventory.py
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Boolean, Text, DateTime, Numeric, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from ..base import Base


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=False, index=True)

    material_code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    material_type = Column(String(50), nullable=False)
    description = Column(Text)

    # Written only by the sale and restock operations
    stock = Column(Integer, default=0, nullable=False)
    unit_price = Column(Numeric(10, 2), default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_inventory_stock_non_negative'),
    )

    # Relationships
    sales = relationship("InventorySale", back_populates="item")


class InventorySale(Base):
    __tablename__ = "inventory_sales"

    item_id = Column(Uuid, ForeignKey("inventory_items.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    sale_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_sale_quantity_positive'),
    )

    # Relationships
    item = relationship("InventoryItem", back_populates="sales")
