from .base_service import BaseService
from .transactional_service import TransactionalService
from .site_service import SiteService, AcademicCycleService
from .student_service import StudentService
from .teacher_service import TeacherService
from .course_service import CourseService
from .enrollment_service import EnrollmentService
from .evaluation_service import EvaluationService
from .fee_service import FeeService
from .inventory_service import InventoryService
from .class_service import ClassService
from .role_service import RoleService

__all__ = [
    "BaseService",
    "TransactionalService",
    "SiteService",
    "AcademicCycleService",
    "StudentService",
    "TeacherService",
    "CourseService",
    "EnrollmentService",
    "EvaluationService",
    "FeeService",
    "InventoryService",
    "ClassService",
    "RoleService",
]
