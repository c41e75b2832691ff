# eduops/models/__init__.py
"""Import all models here, if needed for Alembic migration."""
from .base import Base

# Shared models
from .shared.site import Site

# Site-scoped models
from .tenant_specific.student import Student
from .tenant_specific.teacher import Teacher
from .tenant_specific.course import Course
from .tenant_specific.enrollment import Enrollment
from .tenant_specific.evaluation import Evaluation, AcademicStatus
from .tenant_specific.fee_management import AcademicCycle, PaymentPlan, Installment, Payment, DebtLedger
from .tenant_specific.inventory import InventoryItem, InventorySale
from .tenant_specific.classroom import Classroom, ClassroomCourse, ClassroomStudent, Competency
from .tenant_specific.user_role import UserRole

__all__ = [
    "Base",
    "Site",
    "Student",
    "Teacher",
    "Course",
    "Enrollment",
    "Evaluation",
    "AcademicStatus",
    "AcademicCycle",
    "PaymentPlan",
    "Installment",
    "Payment",
    "DebtLedger",
    "InventoryItem",
    "InventorySale",
    "Classroom",
    "ClassroomCourse",
    "ClassroomStudent",
    "Competency",
    "UserRole",
]
