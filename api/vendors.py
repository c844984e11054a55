from __future__ import annotations

import math
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from api.deps import get_actor, get_service, get_vendor_service
from api.inspections import _request_to_response
from config import settings
from models import Vendor, VendorReview
from schemas.common import to_money
from schemas.vendor import VendorAssign, VendorCreate, VendorReviewCreate, VendorUpdate
from services.leasing import LeasingService
from services.orchestrator import Actor
from services.vendors import RATE_FIELDS, VendorService
from utils.case import isoformat, money_to_response

router = APIRouter(prefix="/api/vendors", tags=["vendors"])

_NON_PROFILE = {"currency", "expected_version"}


def _vendor_to_response(v: Vendor) -> dict[str, Any]:
    return {
        "id": v.id,
        "addedById": v.added_by_id,
        "companyName": v.company_name,
        "contactPerson": v.contact_person,
        "email": v.email,
        "phone": v.phone,
        "address": v.address,
        "website": v.website,
        "description": v.description,
        "specialties": v.specialties or [],
        "serviceAreas": v.service_areas or [],
        "businessLicense": v.business_license,
        "hourlyRate": money_to_response(v.rate("hourly_rate")),
        "emergencyRate": money_to_response(v.rate("emergency_rate")),
        "minimumCharge": money_to_response(v.rate("minimum_charge")),
        "isActive": bool(v.is_active),
        "rating": v.rating,
        "totalReviews": v.total_reviews,
        "version": v.version,
        "createdAt": isoformat(v.created_at),
        "updatedAt": isoformat(v.updated_at),
    }


def _review_to_response(r: VendorReview) -> dict[str, Any]:
    return {
        "id": r.id,
        "vendorId": r.vendor_id,
        "reviewerId": r.reviewer_id,
        "maintenanceRequestId": r.maintenance_request_id,
        "rating": r.rating,
        "comment": r.comment,
        "createdAt": isoformat(r.created_at),
    }


def _profile_fields(body: BaseModel, names, currency: str) -> dict[str, Any]:
    """Snake_case profile values from a request body, with rates converted to Money."""
    fields = {}
    for name in names:
        if name in _NON_PROFILE:
            continue
        value = getattr(body, name)
        fields[name] = to_money(value, currency) if name in RATE_FIELDS else value
    return fields


@router.post("", status_code=201)
async def create_vendor(
    body: VendorCreate,
    actor: Actor = Depends(get_actor),
    vendors: VendorService = Depends(get_vendor_service),
):
    currency = (body.currency or settings.default_currency).upper()
    fields = _profile_fields(body, type(body).model_fields, currency)
    vendor = await vendors.create_vendor(actor, fields, currency)
    return _vendor_to_response(vendor)


@router.get("")
async def list_vendors(
    search: Optional[str] = None,
    specialty: Optional[str] = None,
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=5),
    include_inactive: bool = Query(False, alias="includeInactive"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    vendors: VendorService = Depends(get_vendor_service),
):
    rows, total = await vendors.list_vendors(
        actor,
        search=search,
        specialty=specialty,
        min_rating=min_rating,
        include_inactive=include_inactive,
        page=page,
        limit=limit,
    )
    return {
        "vendors": [_vendor_to_response(v) for v in rows],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


@router.put("/assign/{maintenance_id}")
async def assign_vendor(
    maintenance_id: str,
    body: VendorAssign,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    request = await service.assign_vendor(
        actor,
        maintenance_id,
        body.vendor_id,
        body.vendor_notes,
        to_money(body.vendor_estimate, settings.default_currency),
        body.expected_version,
    )
    return _request_to_response(request)


@router.get("/{vendor_id}")
async def get_vendor(
    vendor_id: str,
    actor: Actor = Depends(get_actor),
    vendors: VendorService = Depends(get_vendor_service),
):
    return _vendor_to_response(await vendors.get_vendor(actor, vendor_id))


@router.put("/{vendor_id}")
async def update_vendor(
    vendor_id: str,
    body: VendorUpdate,
    actor: Actor = Depends(get_actor),
    vendors: VendorService = Depends(get_vendor_service),
):
    current = await vendors.get_vendor(actor, vendor_id)
    fields = _profile_fields(body, body.model_fields_set, current.currency)
    vendor = await vendors.update_vendor(actor, vendor_id, fields, body.expected_version)
    return _vendor_to_response(vendor)


@router.delete("/{vendor_id}")
async def deactivate_vendor(
    vendor_id: str,
    actor: Actor = Depends(get_actor),
    vendors: VendorService = Depends(get_vendor_service),
):
    vendor = await vendors.deactivate_vendor(actor, vendor_id)
    return _vendor_to_response(vendor)


@router.post("/{vendor_id}/reviews", status_code=201)
async def review_vendor(
    vendor_id: str,
    body: VendorReviewCreate,
    actor: Actor = Depends(get_actor),
    vendors: VendorService = Depends(get_vendor_service),
):
    review, vendor = await vendors.add_review(actor, vendor_id, body.rating, body.comment, body.maintenance_request_id)
    out = _review_to_response(review)
    out["vendorRating"] = vendor.rating
    out["vendorTotalReviews"] = vendor.total_reviews
    return out
