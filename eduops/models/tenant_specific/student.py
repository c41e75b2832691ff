# eduops/models/tenant_specific/student.py
from sqlalchemy import Column, String, Date, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from ..base import Base
from ..enums import RecordStatus, enum_column_type


class Student(Base):
    __tablename__ = "students"

    # Foreign Keys
    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=False, index=True)

    # Basic Information
    national_id = Column(String(20), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(100), index=True)
    phone = Column(String(20))
    address = Column(String(500))
    date_of_birth = Column(Date)

    status = Column(enum_column_type(RecordStatus), default=RecordStatus.ACTIVE, nullable=False, index=True)

    # Relationships
    site = relationship("Site", back_populates="students")
    enrollments = relationship("Enrollment", back_populates="student")
