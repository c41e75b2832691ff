# eduops/models/tenant_specific/enrollment.py
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship
from ..base import Base
from ..enums import RecordStatus, enum_column_type


class Enrollment(Base):
    __tablename__ = "enrollments"

    # Foreign Keys
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False, index=True)
    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=False, index=True)
    payment_plan_id = Column(Uuid, ForeignKey("payment_plans.id"), nullable=True, index=True)

    # Enrollment Details
    academic_period = Column(String(20), nullable=False, index=True)
    enrollment_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    status = Column(enum_column_type(RecordStatus), default=RecordStatus.ACTIVE, nullable=False, index=True)

    # One active enrollment per (student, course, period)
    __table_args__ = (
        Index(
            'uq_active_enrollment',
            'student_id', 'course_id', 'academic_period',
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    # Relationships
    student = relationship("Student", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")
    evaluations = relationship("Evaluation", back_populates="enrollment")
    academic_status = relationship("AcademicStatus", back_populates="enrollment", uselist=False)
