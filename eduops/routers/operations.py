# eduops/routers/operations.py
"""Remote-callable transactional operations.

Every endpoint answers 200 with an OperationResult; ``success=false`` is a
business-rule rejection. Lock contention answers 409 with ``retryable``.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.audit import AuditSink
from ..core.config import Settings
from ..core.database import get_db
from ..core.dependencies import get_actor, get_app_settings, get_audit_sink
from ..schemas.operation_schemas import (
    AddInstallmentRequest, AssignClassroomCourseRequest, AssignTeacherRequest,
    EnrollmentStatusRequest, EnrollRequest, MarkOverdueRequest, OperationResult,
    ProcessPaymentRequest, RecordEvaluationRequest, RecordPaymentRequest,
    RegisterAndEnrollRequest, RemoveInstallmentRequest, RestockInventoryRequest,
    ReversePaymentRequest, SellInventoryRequest, SetClassroomStudentsRequest,
    SetCompetenciesRequest, UpdateEvaluationRequest,
)
from ..services import (
    ClassService, CourseService, EnrollmentService, EvaluationService,
    FeeService, InventoryService,
)

router = APIRouter(prefix="/api/v1/operations", tags=["Transactional Operations"])


def service_dependency(service_cls):
    def factory(
        db: AsyncSession = Depends(get_db),
        settings: Settings = Depends(get_app_settings),
        audit: AuditSink = Depends(get_audit_sink),
        actor: Optional[str] = Depends(get_actor),
    ):
        return service_cls(db, settings=settings, audit=audit, actor=actor)
    return factory


# Enrollment
@router.post("/enroll", response_model=OperationResult)
async def enroll(body: EnrollRequest, service: EnrollmentService = Depends(service_dependency(EnrollmentService))):
    """Enroll a student in a course for an academic period (duplicate-checked)"""
    return await service.enroll(**body.model_dump())


@router.post("/register-student-and-enroll", response_model=OperationResult)
async def register_student_and_enroll(
    body: RegisterAndEnrollRequest,
    service: EnrollmentService = Depends(service_dependency(EnrollmentService))
):
    return await service.register_student_and_enroll(**body.model_dump())


@router.post("/set-enrollment-status", response_model=OperationResult)
async def set_enrollment_status(
    body: EnrollmentStatusRequest,
    service: EnrollmentService = Depends(service_dependency(EnrollmentService))
):
    return await service.set_status(body.enrollment_id, body.status)


# Evaluations
@router.post("/record-evaluation", response_model=OperationResult)
async def record_evaluation(
    body: RecordEvaluationRequest,
    service: EvaluationService = Depends(service_dependency(EvaluationService))
):
    """Insert an evaluation and recompute the enrollment's weighted average"""
    return await service.record_evaluation(**body.model_dump())


@router.post("/update-evaluation", response_model=OperationResult)
async def update_evaluation(
    body: UpdateEvaluationRequest,
    service: EvaluationService = Depends(service_dependency(EvaluationService))
):
    return await service.update_evaluation(**body.model_dump())


# Payments
@router.post("/process-payment", response_model=OperationResult)
async def process_payment(body: ProcessPaymentRequest, service: FeeService = Depends(service_dependency(FeeService))):
    """Pay an installment and update plan totals and the student's debt ledger"""
    return await service.process_payment(body.installment_id, body.payment_method)


@router.post("/reverse-payment", response_model=OperationResult)
async def reverse_payment(body: ReversePaymentRequest, service: FeeService = Depends(service_dependency(FeeService))):
    return await service.reverse_payment(body.payment_id)


@router.post("/record-payment", response_model=OperationResult)
async def record_payment(body: RecordPaymentRequest, service: FeeService = Depends(service_dependency(FeeService))):
    return await service.record_payment(**body.model_dump())


@router.post("/mark-overdue", response_model=OperationResult)
async def mark_overdue(body: MarkOverdueRequest, service: FeeService = Depends(service_dependency(FeeService))):
    return await service.mark_overdue(body.as_of)


@router.post("/add-installment", response_model=OperationResult)
async def add_installment(body: AddInstallmentRequest, service: FeeService = Depends(service_dependency(FeeService))):
    return await service.add_installment(**body.model_dump())


@router.post("/remove-installment", response_model=OperationResult)
async def remove_installment(body: RemoveInstallmentRequest, service: FeeService = Depends(service_dependency(FeeService))):
    return await service.remove_installment(body.installment_id)


# Inventory
@router.post("/sell-inventory", response_model=OperationResult)
async def sell_inventory(body: SellInventoryRequest, service: InventoryService = Depends(service_dependency(InventoryService))):
    """Sell inventory to a student; never oversells under concurrent buyers"""
    return await service.sell(body.item_id, body.student_id, body.quantity)


@router.post("/restock-inventory", response_model=OperationResult)
async def restock_inventory(body: RestockInventoryRequest, service: InventoryService = Depends(service_dependency(InventoryService))):
    return await service.restock(body.item_id, body.quantity)


# Courses and classrooms
@router.post("/assign-teacher", response_model=OperationResult)
async def assign_teacher(body: AssignTeacherRequest, service: CourseService = Depends(service_dependency(CourseService))):
    return await service.assign_teacher(body.course_id, body.teacher_id)


@router.post("/assign-course-to-classroom", response_model=OperationResult)
async def assign_course_to_classroom(
    body: AssignClassroomCourseRequest,
    service: ClassService = Depends(service_dependency(ClassService))
):
    return await service.assign_course(body.classroom_id, body.course_id, body.teacher_id)


@router.post("/set-competencies", response_model=OperationResult)
async def set_competencies(body: SetCompetenciesRequest, service: ClassService = Depends(service_dependency(ClassService))):
    return await service.set_competencies(
        body.classroom_course_id,
        [c.model_dump() for c in body.competencies]
    )


@router.post("/set-classroom-students", response_model=OperationResult)
async def set_classroom_students(
    body: SetClassroomStudentsRequest,
    service: ClassService = Depends(service_dependency(ClassService))
):
    return await service.set_students(body.classroom_id, body.student_ids)
