# eduops/models/tenant_specific/course.py
from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from ..base import Base


class Course(Base):
    __tablename__ = "courses"

    code = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    credits = Column(Integer, default=0)
    level = Column(String(50))
    is_active = Column(Boolean, default=True, nullable=False)

    # At most one teacher at a time; written only by the teacher assignment operation
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=True, index=True)

    # Relationships
    teacher = relationship("Teacher", back_populates="courses")
    enrollments = relationship("Enrollment", back_populates="course")
