# eduops/models/tenant_specific/fee_management.py
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Boolean, Date, DateTime, Numeric, ForeignKey,
    UniqueConstraint, CheckConstraint, Uuid
)
from sqlalchemy.orm import relationship
from ..base import Base
from ..enums import InstallmentStatus, PaymentStatus, PaymentMethod, enum_column_type


class AcademicCycle(Base):
    __tablename__ = "academic_cycles"

    name = Column(String(50), nullable=False, unique=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    payment_plans = relationship("PaymentPlan", back_populates="cycle")


class PaymentPlan(Base):
    __tablename__ = "payment_plans"

    # Foreign Keys
    cycle_id = Column(Uuid, ForeignKey("academic_cycles.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    level = Column(String(50), nullable=False)

    # Derived from installments; written only by the payment operations
    total_amount = Column(Numeric(10, 2), default=0, nullable=False)
    paid_amount = Column(Numeric(10, 2), default=0, nullable=False)
    remaining_amount = Column(Numeric(10, 2), default=0, nullable=False)

    # Relationships
    cycle = relationship("AcademicCycle", back_populates="payment_plans")
    installments = relationship("Installment", back_populates="plan", order_by="Installment.sequence_number")


class Installment(Base):
    __tablename__ = "installments"

    plan_id = Column(Uuid, ForeignKey("payment_plans.id"), nullable=False, index=True)

    sequence_number = Column(Integer, nullable=False)
    concept = Column(String(100), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    due_date = Column(Date, nullable=True)

    status = Column(enum_column_type(InstallmentStatus), default=InstallmentStatus.PENDING, nullable=False, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('plan_id', 'sequence_number', name='uq_installment_sequence'),
        CheckConstraint('amount > 0', name='ck_installment_amount_positive'),
    )

    # Relationships
    plan = relationship("PaymentPlan", back_populates="installments")


class Payment(Base):
    """A received payment, either against an installment or a standalone charge."""
    __tablename__ = "payments"

    # Foreign Keys
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=False, index=True)
    installment_id = Column(Uuid, ForeignKey("installments.id"), nullable=True, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    concept = Column(String(100), nullable=False)
    payment_method = Column(enum_column_type(PaymentMethod), default=PaymentMethod.CASH, nullable=False)

    status = Column(enum_column_type(PaymentStatus), default=PaymentStatus.COMPLETED, nullable=False, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    reversed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
    )

    # Relationships
    installment = relationship("Installment")


class DebtLedger(Base):
    """Per-student totals over all installments of the student's payment plans."""
    __tablename__ = "debt_ledgers"

    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, unique=True, index=True)

    total_debt = Column(Numeric(12, 2), default=0, nullable=False)
    pending_debt = Column(Numeric(12, 2), default=0, nullable=False)
    last_updated = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
