# eduops/models/shared/site.py
"""Site (campus) model definition. Sites are the tenant boundary."""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from ..base import Base


class Site(Base):
    __tablename__ = "sites"

    name = Column(String(200), nullable=False, index=True)
    city = Column(String(100), nullable=False)
    address = Column(String(500))
    phone = Column(String(20))
    email = Column(String(254))
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    students = relationship("Student", back_populates="site")
    teachers = relationship("Teacher", back_populates="site")
