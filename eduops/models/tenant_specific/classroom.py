# eduops/models/tenant_specific/classroom.py
from sqlalchemy import Column, String, Integer, Boolean, Numeric, ForeignKey, UniqueConstraint, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from ..base import Base


class Classroom(Base):
    __tablename__ = "classrooms"

    # Foreign Keys
    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=False, index=True)
    cycle_id = Column(Uuid, ForeignKey("academic_cycles.id"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=True, index=True)

    level = Column(String(50), nullable=False)
    grade = Column(String(20), nullable=False)
    section = Column(String(5), nullable=False)
    capacity = Column(Integer, default=30, nullable=False)

    __table_args__ = (
        UniqueConstraint('site_id', 'cycle_id', 'level', 'grade', 'section', name='uq_classroom_section'),
        CheckConstraint('capacity > 0', name='ck_classroom_capacity_positive'),
    )

    # Relationships
    course_assignments = relationship("ClassroomCourse", back_populates="classroom")
    roster = relationship("ClassroomStudent", back_populates="classroom")


class ClassroomStudent(Base):
    """Roster entry; the roster of a classroom is replaced as a whole and bounded by its capacity."""
    __tablename__ = "classroom_students"

    classroom_id = Column(Uuid, ForeignKey("classrooms.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint('classroom_id', 'student_id', name='uq_classroom_student'),
    )

    # Relationships
    classroom = relationship("Classroom", back_populates="roster")


class ClassroomCourse(Base):
    __tablename__ = "classroom_courses"

    classroom_id = Column(Uuid, ForeignKey("classrooms.id"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint('classroom_id', 'course_id', name='uq_classroom_course'),
    )

    # Relationships
    classroom = relationship("Classroom", back_populates="course_assignments")
    competencies = relationship("Competency", back_populates="classroom_course")


class Competency(Base):
    """Weighted competency of a classroom-course pairing; percentages sum to at most 100."""
    __tablename__ = "competencies"

    classroom_course_id = Column(Uuid, ForeignKey("classroom_courses.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)

    __table_args__ = (
        CheckConstraint('percentage >= 0 AND percentage <= 100', name='ck_competency_percentage_range'),
    )

    # Relationships
    classroom_course = relationship("ClassroomCourse", back_populates="competencies")
