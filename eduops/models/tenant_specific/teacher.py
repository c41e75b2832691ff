# eduops/models/tenant_specific/teacher.py
from sqlalchemy import Column, String, Date, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from ..base import Base
from ..enums import RecordStatus, enum_column_type


class Teacher(Base):
    __tablename__ = "teachers"

    # Foreign Keys
    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=False, index=True)

    # Basic Information
    national_id = Column(String(20), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    specialty = Column(String(100))
    email = Column(String(100), index=True)
    phone = Column(String(20))
    address = Column(String(500))
    hire_date = Column(Date)

    # Status
    status = Column(enum_column_type(RecordStatus), default=RecordStatus.ACTIVE, nullable=False, index=True)

    # Relationships
    site = relationship("Site", back_populates="teachers")
    courses = relationship("Course", back_populates="teacher")
