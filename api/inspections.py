from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from api.deps import get_actor, get_service
from models import Inspection, MaintenanceRequest
from schemas.inspection import InspectionCreate, InspectionStatusUpdate, MaintenanceCreate, MaintenanceStatusUpdate
from services.leasing import LeasingService
from services.orchestrator import Actor
from utils.case import isoformat, money_to_response

router = APIRouter(prefix="/api/inspections", tags=["inspections"])
maintenance_router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


def _inspection_to_response(i: Inspection) -> dict[str, Any]:
    return {
        "id": i.id,
        "propertyId": i.property_id,
        "leaseId": i.lease_id,
        "inspectorId": i.inspector_id,
        "scheduledFor": isoformat(i.scheduled_for),
        "status": i.status,
        "notes": i.notes,
        "version": i.version,
        "createdAt": isoformat(i.created_at),
        "updatedAt": isoformat(i.updated_at),
    }


def _request_to_response(r: MaintenanceRequest) -> dict[str, Any]:
    return {
        "id": r.id,
        "propertyId": r.property_id,
        "tenantId": r.tenant_id,
        "title": r.title,
        "description": r.description,
        "priority": r.priority,
        "status": r.status,
        "assignedVendorId": r.assigned_vendor_id,
        "vendorNotes": r.vendor_notes,
        "vendorEstimate": money_to_response(r.estimate),
        "version": r.version,
        "createdAt": isoformat(r.created_at),
        "updatedAt": isoformat(r.updated_at),
    }


@router.post("", status_code=201)
async def schedule_inspection(
    body: InspectionCreate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    inspection = await service.schedule_inspection(
        actor, body.property_id, body.scheduled_for, body.inspector_id, body.lease_id, body.notes
    )
    return _inspection_to_response(inspection)


@router.get("/property/{property_id}")
async def list_inspections(
    property_id: str,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    return [_inspection_to_response(i) for i in await service.list_inspections(actor, property_id)]


@router.put("/{inspection_id}/status")
async def update_inspection_status(
    inspection_id: str,
    body: InspectionStatusUpdate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    inspection = await service.update_inspection_status(actor, inspection_id, body.status, body.expected_version)
    return _inspection_to_response(inspection)


@maintenance_router.post("", status_code=201)
async def open_maintenance_request(
    body: MaintenanceCreate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    request = await service.open_maintenance_request(
        actor, body.property_id, body.title, body.description, body.priority
    )
    return _request_to_response(request)


@maintenance_router.get("/property/{property_id}")
async def list_maintenance_requests(
    property_id: str,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    return [_request_to_response(r) for r in await service.list_maintenance_requests(actor, property_id)]


@maintenance_router.put("/{request_id}/status")
async def update_maintenance_status(
    request_id: str,
    body: MaintenanceStatusUpdate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    request = await service.update_maintenance_status(actor, request_id, body.status, body.expected_version)
    return _request_to_response(request)
