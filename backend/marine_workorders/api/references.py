"""Client, vessel and equipment API routes"""

import logging
from typing import Any, Callable, Dict, List, Type

from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import BaseModel

from marine_workorders.api.dependencies import get_container
from marine_workorders.api.errors import PROBLEM_RESPONSES
from marine_workorders.schemas import ClientCreate, CreatedResponse, EquipmentCreate, VesselCreate
from marine_workorders.services import ServiceContainer
from marine_workorders.services.reference_service import ReferenceService

logger = logging.getLogger(__name__)


def create_reference_router(
    prefix: str,
    tag: str,
    create_schema: Type[BaseModel],
    service_for: Callable[[ServiceContainer], ReferenceService],
) -> APIRouter:
    """CRUD routes for one reference collection"""
    router = APIRouter(prefix=f"/api/v1/{prefix}", tags=[tag], responses=PROBLEM_RESPONSES)

    def get_service(container: ServiceContainer = Depends(get_container)) -> ReferenceService:
        return service_for(container)

    @router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
    async def create_record(
        request: create_schema,  # type: ignore[valid-type]
        service: ReferenceService = Depends(get_service),
    ) -> CreatedResponse:
        record_id = await service.create(request.model_dump(exclude_unset=True))
        return CreatedResponse(id=record_id)

    @router.get("", response_model=List[Dict[str, Any]])
    async def list_records(service: ReferenceService = Depends(get_service)) -> List[Dict[str, Any]]:
        """Most recently updated first"""
        return [record.model_dump(mode="json") for record in await service.list()]

    @router.get("/{record_id}", response_model=Dict[str, Any])
    async def get_record(record_id: str, service: ReferenceService = Depends(get_service)) -> Dict[str, Any]:
        record = await service.get(record_id)
        return record.model_dump(mode="json")

    @router.patch("/{record_id}", response_model=Dict[str, Any])
    async def update_record(
        record_id: str,
        fields: Dict[str, Any] = Body(...),
        service: ReferenceService = Depends(get_service),
    ) -> Dict[str, Any]:
        await service.update(record_id, fields)
        record = await service.get(record_id)
        return record.model_dump(mode="json")

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_record(record_id: str, service: ReferenceService = Depends(get_service)) -> Response:
        """Work orders referencing the record keep their ids and show '-' for its name"""
        await service.delete(record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


clients_router = create_reference_router("clients", "clients", ClientCreate, lambda c: c.clients)
vessels_router = create_reference_router("vessels", "vessels", VesselCreate, lambda c: c.vessels)
equipment_router = create_reference_router("equipment", "equipment", EquipmentCreate, lambda c: c.equipment)
