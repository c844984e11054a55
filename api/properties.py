from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from api.deps import get_actor, get_service
from config import settings
from models import Property
from schemas.common import to_money
from schemas.property import PropertyCreate
from services.leasing import LeasingService
from services.orchestrator import Actor
from utils.case import isoformat, money_to_response

router = APIRouter(prefix="/api/properties", tags=["properties"])


def _property_to_response(prop: Property) -> dict[str, Any]:
    return {
        "id": prop.id,
        "ownerId": prop.owner_id,
        "title": prop.title,
        "address": prop.address,
        "rent": money_to_response(prop.rent),
        "status": prop.status,
        "isRentStabilized": bool(prop.is_rent_stabilized),
        "createdAt": isoformat(prop.created_at),
        "updatedAt": isoformat(prop.updated_at),
    }


@router.post("", status_code=201)
async def create_property(
    body: PropertyCreate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    rent = to_money(body.rent_amount, body.currency or settings.default_currency)
    prop = await service.create_property(actor, body.title, body.address, rent, body.is_rent_stabilized)
    return _property_to_response(prop)


@router.get("/{property_id}")
async def get_property(property_id: str, service: LeasingService = Depends(get_service)):
    return _property_to_response(await service.get_property(property_id))
