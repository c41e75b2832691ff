# eduops/services/site_service.py
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..models.shared.site import Site
from ..models.tenant_specific.fee_management import AcademicCycle


class SiteService(BaseService[Site]):
    duplicate_message = "Site already exists"

    def __init__(self, db: AsyncSession):
        super().__init__(Site, db)


class AcademicCycleService(BaseService[AcademicCycle]):
    duplicate_message = "An academic cycle with this name already exists"

    def __init__(self, db: AsyncSession):
        super().__init__(AcademicCycle, db)
