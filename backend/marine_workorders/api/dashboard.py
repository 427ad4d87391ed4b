"""Operations dashboard API route"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from marine_workorders.api.dependencies import get_container
from marine_workorders.services import ServiceContainer

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("")
async def get_dashboard(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    """KPIs over active work orders, the focus list and the work queue"""
    dashboard = container.dashboard.build(await container.rows())
    return dashboard.to_dict()
