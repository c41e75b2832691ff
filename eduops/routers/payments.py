# eduops/routers/payments.py
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..schemas.entity_schemas import (
    DebtLedgerOut, InstallmentOut, PaymentOut, PaymentPlanCreate, PaymentPlanDetail,
    PaymentPlanOut, PaymentPlanUpdate,
)
from ..schemas.pagination import PaginatedResponse, to_page
from ..services import FeeService

router = APIRouter(prefix="/api/v1", tags=["Payment Plans and Payments"])


@router.get("/payment-plans", response_model=PaginatedResponse[PaymentPlanOut])
async def get_payment_plans(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    student_id: Optional[UUID] = Query(None),
    cycle_id: Optional[UUID] = Query(None),
    level: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    result = await FeeService(db).get_paginated(
        page=page, size=size, student_id=student_id, cycle_id=cycle_id, level=level
    )
    return to_page(result, PaymentPlanOut)


@router.post("/payment-plans", response_model=PaymentPlanOut, status_code=201)
async def create_payment_plan(body: PaymentPlanCreate, db: AsyncSession = Depends(get_db)):
    """Create an empty plan; installments are added through the add-installment operation"""
    return await FeeService(db).create(body.model_dump())


@router.get("/payment-plans/{plan_id}", response_model=PaymentPlanDetail)
async def get_payment_plan(plan_id: UUID, db: AsyncSession = Depends(get_db)):
    service = FeeService(db)
    plan = await service.get(plan_id)
    if not plan:
        raise NotFoundError("Payment plan", plan_id)
    installments = await service.get_installments(plan_id)
    return PaymentPlanDetail(
        **PaymentPlanOut.model_validate(plan).model_dump(),
        installments=[InstallmentOut.model_validate(i) for i in installments],
    )


@router.patch("/payment-plans/{plan_id}", response_model=PaymentPlanOut)
async def update_payment_plan(plan_id: UUID, body: PaymentPlanUpdate, db: AsyncSession = Depends(get_db)):
    plan = await FeeService(db).update(plan_id, body.model_dump(exclude_unset=True))
    if not plan:
        raise NotFoundError("Payment plan", plan_id)
    return plan


@router.get("/students/{student_id}/installments", response_model=List[InstallmentOut])
async def get_open_installments(student_id: UUID, db: AsyncSession = Depends(get_db)):
    """Pending and overdue installments of a student"""
    return await FeeService(db).get_open_installments(student_id)


@router.get("/students/{student_id}/payments", response_model=List[PaymentOut])
async def get_payment_history(
    student_id: UUID,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    return await FeeService(db).get_payment_history(student_id, start_date, end_date)


@router.get("/students/{student_id}/debt", response_model=DebtLedgerOut)
async def get_debt_ledger(student_id: UUID, db: AsyncSession = Depends(get_db)):
    ledger = await FeeService(db).get_ledger(student_id)
    if not ledger:
        return DebtLedgerOut(student_id=student_id, total_debt=0, pending_debt=0)
    return ledger
