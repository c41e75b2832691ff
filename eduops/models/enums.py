# eduops/models/enums.py
import enum

from sqlalchemy import Enum


class RecordStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AcademicState(enum.Enum):
    APPROVED = "approved"
    FAILED = "failed"
    NO_GRADES = "no_grades"


class InstallmentStatus(enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class PaymentStatus(enum.Enum):
    COMPLETED = "completed"
    REVERSED = "reversed"


class PaymentMethod(enum.Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    ONLINE = "online"
    OTHER = "other"


class AppRole(enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


def enum_column_type(enum_cls):
    """Store enum values as VARCHAR(20) rather than a native database enum"""
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
