# tests/test_payments.py
import asyncio
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select

from eduops.core.exceptions import ProtectedFieldError
from eduops.models import Payment
from eduops.models.enums import InstallmentStatus, PaymentStatus
from eduops.services import FeeService

pytestmark = pytest.mark.anyio

TODAY = date(2025, 6, 15)


@pytest.fixture
async def plan_with_installments(session, settings, seed):
    """Plan "2025-I Primaria" with two installments of 100, due in April and July."""
    site = await seed.site()
    student = await seed.student(site)
    plan = await seed.plan(student, await seed.cycle())
    service = FeeService(session, settings=settings)

    first = await service.add_installment(plan.id, 1, "Pensión abril", Decimal("100"), date(2025, 4, 30))
    second = await service.add_installment(plan.id, 2, "Pensión julio", Decimal("100"), date(2025, 7, 31))
    assert first.success and second.success
    return {
        "student": student,
        "plan": plan,
        "installments": [UUID(first.data["installment_id"]), UUID(second.data["installment_id"])],
    }


async def test_installments_build_plan_and_ledger(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)
    plan = await service.get(plan_with_installments["plan"].id)
    ledger = await service.get_ledger(plan_with_installments["student"].id)

    assert plan.total_amount == Decimal("200.00")
    assert plan.paid_amount == Decimal("0.00")
    assert plan.remaining_amount == Decimal("200.00")
    assert ledger.total_debt == Decimal("200.00")
    assert ledger.pending_debt == Decimal("200.00")


async def test_duplicate_sequence_number_is_rejected(session, settings, plan_with_installments):
    result = await FeeService(session, settings=settings).add_installment(
        plan_with_installments["plan"].id, 2, "Repetida", Decimal("50")
    )
    assert result.success is False
    assert result.message == "Installment 2 already exists in this plan"


async def test_process_payment_updates_plan_and_ledger(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)

    result = await service.process_payment(plan_with_installments["installments"][0])

    assert result.success is True
    assert result.data["amount"] == 100.0
    assert result.data["plan_paid"] == 100.0
    assert result.data["plan_remaining"] == 100.0
    assert result.data["pending_debt"] == 100.0
    assert result.data["total_debt"] == 200.0

    installments = await service.get_installments(plan_with_installments["plan"].id)
    assert installments[0].status == InstallmentStatus.PAID
    assert installments[0].paid_at is not None
    history = await service.get_payment_history(plan_with_installments["student"].id)
    assert len(history) == 1
    assert history[0].status == PaymentStatus.COMPLETED


async def test_paying_every_installment_settles_the_plan(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)
    first, second = plan_with_installments["installments"]

    assert (await service.process_payment(first)).data["plan_paid"] == 100.0
    result = await service.process_payment(second)

    assert result.data["plan_paid"] == 200.0
    assert result.data["plan_remaining"] == 0.0
    plan = await service.get(plan_with_installments["plan"].id)
    assert plan.paid_amount == Decimal("200.00")
    assert plan.remaining_amount == Decimal("0.00")
    ledger = await service.get_ledger(plan_with_installments["student"].id)
    assert ledger.total_debt == Decimal("200.00")
    assert ledger.pending_debt == Decimal("0.00")


async def test_concurrent_payments_across_plans_share_one_ledger(database, settings, seed, plan_with_installments):
    student = plan_with_installments["student"]
    second_plan = await seed.plan(student, await seed.cycle(), name="2025-II Primaria")
    async with database.session() as s:
        service = FeeService(s, settings=settings)
        extra = [
            await service.add_installment(second_plan.id, n, f"Pensión {n}", Decimal("100"), date(2025, 9, 30))
            for n in (1, 2)
        ]
    installment_ids = plan_with_installments["installments"] + [UUID(r.data["installment_id"]) for r in extra]

    async def pay(installment_id):
        async with database.session() as s:
            return await FeeService(s, settings=settings).process_payment(installment_id)

    results = await asyncio.gather(*[pay(i) for i in installment_ids])

    assert all(r.success for r in results)
    async with database.session() as s:
        service = FeeService(s, settings=settings)
        ledger = await service.get_ledger(student.id)
        assert ledger.total_debt == Decimal("400.00")
        assert ledger.pending_debt == Decimal("0.00")
        for plan_id in (plan_with_installments["plan"].id, second_plan.id):
            plan = await service.get(plan_id)
            assert plan.paid_amount == Decimal("200.00")
            assert plan.remaining_amount == Decimal("0.00")


async def test_paying_twice_is_rejected(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)
    installment_id = plan_with_installments["installments"][0]

    assert (await service.process_payment(installment_id)).success
    again = await service.process_payment(installment_id)

    assert again.success is False
    assert again.message == "Installment is already paid"


async def test_concurrent_payments_of_one_installment(database, settings, plan_with_installments):
    installment_id = plan_with_installments["installments"][0]

    async def pay():
        async with database.session() as s:
            return await FeeService(s, settings=settings).process_payment(installment_id)

    results = await asyncio.gather(*[pay() for _ in range(4)])

    assert sum(r.success for r in results) == 1
    async with database.session() as s:
        count = await s.execute(select(func.count(Payment.id)).where(Payment.installment_id == installment_id))
        assert count.scalar() == 1
        ledger = await FeeService(s, settings=settings).get_ledger(plan_with_installments["student"].id)
        assert ledger.pending_debt == Decimal("100.00")


async def test_reverse_payment_restores_debt(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)
    paid = await service.process_payment(plan_with_installments["installments"][1])

    result = await service.reverse_payment(UUID(paid.data["payment_id"]), as_of=TODAY)

    assert result.success is True
    assert result.data["installment_status"] == "pending"
    assert result.data["plan_paid"] == 0.0
    assert result.data["plan_remaining"] == 200.0
    assert result.data["pending_debt"] == 200.0

    history = await service.get_payment_history(plan_with_installments["student"].id)
    assert history[0].status == PaymentStatus.REVERSED
    assert history[0].reversed_at is not None


async def test_reversal_of_past_due_installment_marks_it_overdue(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)
    paid = await service.process_payment(plan_with_installments["installments"][0])

    result = await service.reverse_payment(UUID(paid.data["payment_id"]), as_of=TODAY)

    assert result.data["installment_status"] == "overdue"


async def test_double_reversal_changes_nothing(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)
    paid = await service.process_payment(plan_with_installments["installments"][0])
    payment_id = UUID(paid.data["payment_id"])

    await service.reverse_payment(payment_id, as_of=TODAY)
    again = await service.reverse_payment(payment_id, as_of=TODAY)

    assert again.success is True
    assert again.message == "Payment was already reversed"
    ledger = await service.get_ledger(plan_with_installments["student"].id)
    assert ledger.pending_debt == Decimal("200.00")


async def test_paid_installment_cannot_be_removed(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)
    installment_id = plan_with_installments["installments"][0]
    await service.process_payment(installment_id)

    result = await service.remove_installment(installment_id)

    assert result.success is False
    assert result.message == "Paid installments cannot be removed"


async def test_remove_installment_shrinks_plan(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)

    result = await service.remove_installment(plan_with_installments["installments"][1])

    assert result.success is True
    assert result.data["plan_total"] == 100.0
    assert result.data["total_debt"] == 100.0
    assert len(await service.get_installments(plan_with_installments["plan"].id)) == 1


async def test_mark_overdue_is_idempotent(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)

    first = await service.mark_overdue(as_of=TODAY)
    second = await service.mark_overdue(as_of=TODAY)

    assert first.data["updated"] == 1
    assert second.data["updated"] == 0
    open_items = await service.get_open_installments(plan_with_installments["student"].id)
    assert [i.status for i in open_items] == [InstallmentStatus.OVERDUE, InstallmentStatus.PENDING]
    ledger = await service.get_ledger(plan_with_installments["student"].id)
    assert ledger.pending_debt == Decimal("200.00")


async def test_overdue_installment_can_still_be_paid(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)
    await service.mark_overdue(as_of=TODAY + timedelta(days=60))

    result = await service.process_payment(plan_with_installments["installments"][1])

    assert result.success is True
    assert result.data["pending_debt"] == 100.0


async def test_standalone_payment(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)
    service = FeeService(session, settings=settings)

    assert (await service.record_payment(student.id, site.id, Decimal("0"), "Matrícula")).success is False
    result = await service.record_payment(student.id, site.id, Decimal("150"), "Matrícula")

    assert result.success is True
    reversed_ = await service.reverse_payment(UUID(result.data["payment_id"]))
    assert reversed_.success is True
    assert "installment_id" not in reversed_.data


async def test_plan_totals_cannot_be_written_directly(session, settings, plan_with_installments):
    with pytest.raises(ProtectedFieldError):
        await FeeService(session, settings=settings).update(
            plan_with_installments["plan"].id, {"paid_amount": Decimal("200")}
        )


async def test_standalone_payment_needs_a_known_site(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)

    result = await FeeService(session, settings=settings).record_payment(student.id, uuid4(), Decimal("10"), "Matrícula")

    assert result.success is False
    assert result.message == "Site not found"


@pytest.mark.parametrize("amount", [Decimal("100000000"), Decimal("1e9")])
async def test_installment_amount_beyond_column_range_is_rejected(session, settings, plan_with_installments, amount):
    service = FeeService(session, settings=settings)

    result = await service.add_installment(plan_with_installments["plan"].id, 3, "Cuota", amount)

    assert result.success is False
    assert result.message == "Installment amount must not exceed 99999999.99"
    assert len(await service.get_installments(plan_with_installments["plan"].id)) == 2


async def test_plan_total_beyond_column_range_is_rejected(session, settings, plan_with_installments):
    service = FeeService(session, settings=settings)

    result = await service.add_installment(plan_with_installments["plan"].id, 3, "Cuota", Decimal("99999950"))

    assert result.success is False
    assert result.message == "Plan total must not exceed 99999999.99"
    plan = await service.get(plan_with_installments["plan"].id)
    assert plan.total_amount == Decimal("200.00")


async def test_standalone_payment_beyond_column_range_is_rejected(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)

    result = await FeeService(session, settings=settings).record_payment(student.id, site.id, Decimal("1e9"), "Matrícula")

    assert result.success is False
    assert result.message == "Payment amount must not exceed 99999999.99"
