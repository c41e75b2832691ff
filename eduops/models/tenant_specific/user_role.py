# eduops/models/tenant_specific/user_role.py
from sqlalchemy import Column, String, UniqueConstraint
from ..base import Base
from ..enums import AppRole, enum_column_type


class UserRole(Base):
    __tablename__ = "user_roles"

    # Identifier issued by the external identity provider
    user_id = Column(String(64), nullable=False, index=True)
    role = Column(enum_column_type(AppRole), nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'role', name='uq_user_role'),
    )
