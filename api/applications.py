from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends

from api.deps import get_actor, get_service
from config import settings
from models import Property, RentalApplication
from models.enums import ApplicationStatus
from schemas.application import ApplicationCreate, ApplicationStatusUpdate, ApplicationWithdraw
from services import fee_calculator as fees
from services.leasing import LeasingService
from services.money import Money
from services.orchestrator import Actor
from utils.case import dict_keys_to_camel, isoformat, money_to_response

router = APIRouter(prefix="/api/applications", tags=["applications"])


def _income_assessment(app: RentalApplication, prop: Property) -> dict[str, Any]:
    ratio = fees.income_to_rent_ratio(app.income, prop.rent, annualize=settings.income_ratio_annualize)
    return {
        "ratio": round(ratio, 2),
        "classification": fees.classify_income_ratio(ratio).value,
        "annualized": settings.income_ratio_annualize,
    }


def _app_to_response(app: RentalApplication, prop: Optional[Property] = None) -> dict[str, Any]:
    """Serialize application to dict with camelCase for frontend."""
    out = {
        "id": app.id,
        "propertyId": app.property_id,
        "applicantId": app.applicant_id,
        "status": app.status,
        "moveInDate": isoformat(app.move_in_date),
        "monthlyIncome": money_to_response(app.income),
        "employmentInfo": dict_keys_to_camel(app.employment_info) if app.employment_info else {},
        "references": dict_keys_to_camel(app.references) if app.references else [],
        "documents": dict_keys_to_camel(app.documents) if app.documents else {},
        "creditCheckConsent": bool(app.credit_check_consent),
        "backgroundCheckConsent": bool(app.background_check_consent),
        "backgroundCheckStatus": app.background_check_status,
        "notes": app.notes,
        "landlordNotes": app.landlord_notes,
        "version": app.version,
        "createdAt": isoformat(app.created_at),
        "updatedAt": isoformat(app.updated_at),
    }
    if prop is not None:
        out["property"] = {"id": prop.id, "title": prop.title, "rent": money_to_response(prop.rent)}
        out["incomeToRent"] = _income_assessment(app, prop)
    return out


@router.post("", status_code=201)
async def submit_application(
    body: ApplicationCreate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    draft = body.to_draft(settings.default_currency)
    app = await service.submit_application(actor, body.property_id, draft)
    prop = await service.get_property(app.property_id)
    return _app_to_response(app, prop)


@router.get("")
async def list_applications(
    property_id: Optional[str] = None,
    status: Optional[ApplicationStatus] = None,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    rows = await service.list_applications(actor, property_id=property_id, status=status)
    return [_app_to_response(a, p) for a, p in rows]


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    app, prop = await service.get_application(actor, application_id)
    return _app_to_response(app, prop)


@router.put("/{application_id}/status")
async def update_application_status(
    application_id: str,
    body: ApplicationStatusUpdate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    app = await service.update_application_status(
        actor, application_id, body.status, body.notes, body.expected_version
    )
    return _app_to_response(app)


@router.put("/{application_id}/withdraw")
async def withdraw_application(
    application_id: str,
    body: Optional[ApplicationWithdraw] = None,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    expected = body.expected_version if body else None
    app = await service.withdraw_application(actor, application_id, expected)
    return _app_to_response(app)


@router.post("/{application_id}/background-check")
async def initiate_background_check(
    application_id: str,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    app = await service.initiate_background_check(actor, application_id)
    return {
        "applicationId": app.id,
        "backgroundCheckStatus": app.background_check_status,
        "backgroundCheckReference": app.background_check_reference,
        "fee": money_to_response(Money(settings.background_check_fee, app.currency)),
    }
