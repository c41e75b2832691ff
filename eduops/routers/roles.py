# eduops/routers/roles.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..models.enums import AppRole
from ..schemas.entity_schemas import UserRoleOut
from ..services import RoleService

router = APIRouter(prefix="/api/v1/roles", tags=["Roles"])


@router.get("/{user_id}", response_model=UserRoleOut)
async def get_user_role(user_id: str, db: AsyncSession = Depends(get_db)):
    """Role lookup for the client adapter's authorization checks"""
    role = await RoleService(db).get_user_role(user_id)
    return UserRoleOut(user_id=user_id, role=role)


@router.get("/{user_id}/has/{role}")
async def check_user_role(user_id: str, role: AppRole, db: AsyncSession = Depends(get_db)):
    return {"user_id": user_id, "role": role.value, "granted": await RoleService(db).has_role(user_id, role)}
