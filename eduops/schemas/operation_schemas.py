# eduops/schemas/operation_schemas.py
"""Request bodies and the result envelope of the transactional operations."""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.enums import PaymentMethod, RecordStatus


class OperationResult(BaseModel):
    """Outcome of an operation. ``success`` is authoritative; ``message`` is for display."""
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, message: str, **data) -> "OperationResult":
        return cls(success=True, message=message, data=data or None)

    @classmethod
    def rejected(cls, message: str, data: Optional[Dict[str, Any]] = None) -> "OperationResult":
        return cls(success=False, message=message, data=data)


class EnrollRequest(BaseModel):
    student_id: UUID
    course_id: UUID
    site_id: UUID
    academic_period: str = Field(..., min_length=1, max_length=20)
    payment_plan_id: Optional[UUID] = None


class RegisterAndEnrollRequest(BaseModel):
    national_id: str = Field(..., min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=100)
    course_id: UUID
    site_id: UUID
    academic_period: str = Field(..., min_length=1, max_length=20)


class EnrollmentStatusRequest(BaseModel):
    enrollment_id: UUID
    status: RecordStatus


class RecordEvaluationRequest(BaseModel):
    enrollment_id: UUID
    evaluation_type: str = Field(..., min_length=1, max_length=50)
    score: Decimal
    weight: Decimal = Decimal("1")
    evaluation_date: date
    notes: Optional[str] = None


class UpdateEvaluationRequest(BaseModel):
    evaluation_id: UUID
    evaluation_type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    score: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    evaluation_date: Optional[date] = None
    notes: Optional[str] = None


class ProcessPaymentRequest(BaseModel):
    installment_id: UUID
    payment_method: PaymentMethod = PaymentMethod.CASH


class ReversePaymentRequest(BaseModel):
    payment_id: UUID


class RecordPaymentRequest(BaseModel):
    student_id: UUID
    site_id: UUID
    amount: Decimal
    concept: str = Field(..., min_length=1, max_length=100)
    payment_method: PaymentMethod = PaymentMethod.CASH


class MarkOverdueRequest(BaseModel):
    as_of: Optional[date] = None


class AddInstallmentRequest(BaseModel):
    plan_id: UUID
    sequence_number: int = Field(..., ge=1)
    concept: str = Field(..., min_length=1, max_length=100)
    amount: Decimal
    due_date: Optional[date] = None


class RemoveInstallmentRequest(BaseModel):
    installment_id: UUID


class SellInventoryRequest(BaseModel):
    item_id: UUID
    student_id: UUID
    quantity: int


class RestockInventoryRequest(BaseModel):
    item_id: UUID
    quantity: int


class AssignTeacherRequest(BaseModel):
    course_id: UUID
    teacher_id: UUID


class AssignClassroomCourseRequest(BaseModel):
    classroom_id: UUID
    course_id: UUID
    teacher_id: Optional[UUID] = None


class CompetencyIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    percentage: Decimal


class SetCompetenciesRequest(BaseModel):
    classroom_course_id: UUID
    competencies: List[CompetencyIn]


class SetClassroomStudentsRequest(BaseModel):
    classroom_id: UUID
    student_ids: List[UUID]
