# eduops/schemas/entity_schemas.py
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.enums import (
    AcademicState, AppRole, InstallmentStatus, PaymentMethod, PaymentStatus, RecordStatus
)


class ORMModel(BaseModel):
    model_config = {"from_attributes": True}


class Timestamped(ORMModel):
    id: UUID
    created_at: datetime
    updated_at: datetime


# Sites
class SiteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=254)


class SiteUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_active: Optional[bool] = None


class SiteOut(Timestamped, SiteCreate):
    is_active: bool


# Students
class StudentCreate(BaseModel):
    site_id: UUID
    national_id: str = Field(..., min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
    date_of_birth: Optional[date] = None


class StudentUpdate(BaseModel):
    site_id: Optional[UUID] = None
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None


class StudentOut(Timestamped, StudentCreate):
    status: RecordStatus


class StatusUpdate(BaseModel):
    status: RecordStatus


# Teachers
class TeacherCreate(BaseModel):
    site_id: UUID
    national_id: str = Field(..., min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    specialty: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
    hire_date: Optional[date] = None


class TeacherUpdate(BaseModel):
    site_id: Optional[UUID] = None
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    specialty: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    hire_date: Optional[date] = None


class TeacherOut(Timestamped, TeacherCreate):
    status: RecordStatus


# Courses
class CourseCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    credits: int = Field(default=0, ge=0)
    level: Optional[str] = Field(default=None, max_length=50)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    credits: Optional[int] = Field(default=None, ge=0)
    level: Optional[str] = None
    is_active: Optional[bool] = None


class CourseOut(Timestamped, CourseCreate):
    is_active: bool
    teacher_id: Optional[UUID] = None


class CourseStatistics(BaseModel):
    course_id: UUID
    total_students: int
    evaluated_students: int
    approved: int
    failed: int
    average: Optional[Decimal] = None


# Enrollments and grading
class EnrollmentOut(Timestamped):
    student_id: UUID
    course_id: UUID
    site_id: UUID
    payment_plan_id: Optional[UUID] = None
    academic_period: str
    enrollment_date: datetime
    status: RecordStatus


class EvaluationOut(Timestamped):
    enrollment_id: UUID
    evaluation_type: str
    score: Decimal
    weight: Decimal
    evaluation_date: date
    notes: Optional[str] = None


class AcademicStatusOut(ORMModel):
    enrollment_id: UUID
    average: Optional[Decimal] = None
    state: AcademicState
    last_updated: Optional[datetime] = None


# Payments
class AcademicCycleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    start_date: date
    end_date: date


class AcademicCycleOut(Timestamped, AcademicCycleCreate):
    is_active: bool


class PaymentPlanCreate(BaseModel):
    cycle_id: UUID
    student_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    level: str = Field(..., min_length=1, max_length=50)


class PaymentPlanUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    level: Optional[str] = Field(default=None, min_length=1, max_length=50)


class InstallmentOut(Timestamped):
    plan_id: UUID
    sequence_number: int
    concept: str
    amount: Decimal
    due_date: Optional[date] = None
    status: InstallmentStatus
    paid_at: Optional[datetime] = None


class PaymentPlanOut(Timestamped, PaymentPlanCreate):
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal


class PaymentPlanDetail(PaymentPlanOut):
    installments: List[InstallmentOut] = []


class PaymentOut(Timestamped):
    student_id: UUID
    site_id: UUID
    installment_id: Optional[UUID] = None
    amount: Decimal
    concept: str
    payment_method: PaymentMethod
    status: PaymentStatus
    paid_at: datetime
    reversed_at: Optional[datetime] = None


class DebtLedgerOut(ORMModel):
    student_id: UUID
    total_debt: Decimal
    pending_debt: Decimal
    last_updated: Optional[datetime] = None


# Inventory
class InventoryItemCreate(BaseModel):
    site_id: UUID
    material_code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    material_type: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    material_type: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class InventoryItemOut(Timestamped, InventoryItemCreate):
    stock: int
    is_active: bool


class InventorySaleOut(Timestamped):
    item_id: UUID
    student_id: UUID
    quantity: int
    total_price: Decimal
    sale_date: datetime


# Classrooms
class ClassroomCreate(BaseModel):
    site_id: UUID
    cycle_id: UUID
    teacher_id: Optional[UUID] = None
    level: str = Field(..., min_length=1, max_length=50)
    grade: str = Field(..., min_length=1, max_length=20)
    section: str = Field(..., min_length=1, max_length=5)
    capacity: int = Field(default=30, gt=0)


class ClassroomUpdate(BaseModel):
    teacher_id: Optional[UUID] = None
    capacity: Optional[int] = Field(default=None, gt=0)


class ClassroomOut(Timestamped, ClassroomCreate):
    pass


class CompetencyOut(ORMModel):
    id: UUID
    name: str
    percentage: Decimal


class ClassroomCourseOut(Timestamped):
    classroom_id: UUID
    course_id: UUID
    teacher_id: Optional[UUID] = None


class ClassroomStudentOut(Timestamped):
    classroom_id: UUID
    student_id: UUID
    is_active: bool


# Roles
class UserRoleOut(BaseModel):
    user_id: str
    role: Optional[AppRole] = None
