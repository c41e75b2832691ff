# eduops/models/tenant_specific/evaluation.py
from datetime import datetime, timezone

from sqlalchemy import Column, String, Date, DateTime, Numeric, Text, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from ..base import Base
from ..enums import AcademicState, enum_column_type


class Evaluation(Base):
    __tablename__ = "evaluations"

    enrollment_id = Column(Uuid, ForeignKey("enrollments.id"), nullable=False, index=True)

    evaluation_type = Column(String(50), nullable=False)
    score = Column(Numeric(6, 2), nullable=False)
    weight = Column(Numeric(6, 2), nullable=False, default=1)
    evaluation_date = Column(Date, nullable=False)
    notes = Column(Text)

    __table_args__ = (
        CheckConstraint('weight > 0', name='ck_evaluation_weight_positive'),
    )

    # Relationships
    enrollment = relationship("Enrollment", back_populates="evaluations")


class AcademicStatus(Base):
    """Denormalized weighted average for one enrollment.

    Maintained only by the evaluation operations, under a row lock.
    """
    __tablename__ = "academic_statuses"

    enrollment_id = Column(Uuid, ForeignKey("enrollments.id"), nullable=False, unique=True, index=True)

    average = Column(Numeric(6, 2), nullable=True)
    state = Column(enum_column_type(AcademicState), default=AcademicState.NO_GRADES, nullable=False)
    last_updated = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    enrollment = relationship("Enrollment", back_populates="academic_status")
