from __future__ import annotations

import math
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_actor, get_service
from config import settings
from models import Lease
from models.enums import LeaseStatus
from schemas.common import to_money
from schemas.lease import LeaseCreate, LeaseRenew, LeaseTerminate, LeaseUpdate, RentEscalationRequest
from services import fee_calculator as fees
from services.leasing import LeasingService
from services.lifecycle_engine import allowed_lease_actions
from services.orchestrator import Actor
from utils.case import dict_keys_to_snake, isoformat, money_to_response, to_response

router = APIRouter(prefix="/api/leases", tags=["leases"])


def _lease_to_response(lease: Lease) -> dict[str, Any]:
    return {
        "id": lease.id,
        "applicationId": lease.application_id,
        "propertyId": lease.property_id,
        "tenantId": lease.tenant_id,
        "landlordId": lease.landlord_id,
        "status": lease.status,
        "startDate": isoformat(lease.start_date),
        "endDate": isoformat(lease.end_date),
        "monthlyRent": money_to_response(lease.rent),
        "securityDeposit": money_to_response(lease.deposit),
        "terms": to_response(lease.terms or {}),
        "documentUrl": lease.document_url,
        "signedAt": isoformat(lease.signed_at),
        "terminatedAt": isoformat(lease.terminated_at),
        "supersedesId": lease.supersedes_id,
        "supersededById": lease.superseded_by_id,
        "allowedActions": allowed_lease_actions(lease.status),
        "version": lease.version,
        "createdAt": isoformat(lease.created_at),
        "updatedAt": isoformat(lease.updated_at),
    }


@router.post("/from-application/{application_id}", status_code=201)
async def create_lease(
    application_id: str,
    body: LeaseCreate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    currency = body.currency or settings.default_currency
    lease = await service.create_lease(
        actor,
        application_id,
        body.start_date,
        body.end_date,
        to_money(body.monthly_rent, currency),
        to_money(body.security_deposit, currency),
        dict_keys_to_snake(body.terms),
    )
    return _lease_to_response(lease)


@router.get("")
async def list_leases(
    status: Optional[LeaseStatus] = None,
    property_id: Optional[str] = Query(None, alias="propertyId"),
    expiring_in: Optional[int] = Query(None, alias="expiringIn", ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    leases, total = await service.list_leases(
        actor, status=status, property_id=property_id, expiring_in=expiring_in, page=page, limit=limit
    )
    return {
        "leases": [_lease_to_response(l) for l in leases],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


@router.get("/renewals/candidates")
async def renewal_candidates(
    days_ahead: Optional[int] = Query(None, alias="daysAhead", ge=1),
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    rows = await service.renewal_candidates(actor, days_ahead or settings.renewal_candidate_days)
    out = []
    for lease, days in rows:
        item = _lease_to_response(lease)
        item["daysUntilExpiry"] = days
        item["expiryUrgency"] = fees.classify_expiry(days).value
        out.append(item)
    return out


@router.get("/dashboard/stats")
async def lease_stats(actor: Actor = Depends(get_actor), service: LeasingService = Depends(get_service)):
    return to_response(await service.lease_stats(actor))


@router.post("/expire-overdue")
async def expire_overdue(actor: Actor = Depends(get_actor), service: LeasingService = Depends(get_service)):
    expired = await service.expire_overdue_leases(actor)
    return {"expired": [l.id for l in expired], "count": len(expired)}


@router.get("/{lease_id}")
async def get_lease(lease_id: str, actor: Actor = Depends(get_actor), service: LeasingService = Depends(get_service)):
    return _lease_to_response(await service.get_lease(actor, lease_id))


@router.put("/{lease_id}")
async def update_lease(
    lease_id: str,
    body: LeaseUpdate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    lease = await service.update_lease(actor, lease_id, body.status, body.document_url, body.expected_version)
    return _lease_to_response(lease)


@router.post("/{lease_id}/terminate")
async def terminate_lease(
    lease_id: str,
    body: LeaseTerminate,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    lease = await service.terminate_lease(
        actor, lease_id, body.termination_date, body.reason, body.refund_deposit, body.expected_version
    )
    return _lease_to_response(lease)


@router.post("/{lease_id}/renew", status_code=201)
async def renew_lease(
    lease_id: str,
    body: LeaseRenew,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    original = await service.get_lease(actor, lease_id)
    new_rent = to_money(body.new_monthly_rent, original.currency)
    renewal = await service.renew_lease(
        actor,
        lease_id,
        body.new_end_date,
        new_rent,
        dict_keys_to_snake(body.renewal_terms) if body.renewal_terms else None,
        body.expected_version,
    )
    return _lease_to_response(renewal)


@router.get("/{lease_id}/financials")
async def lease_financials(
    lease_id: str,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    summary = await service.lease_financials(actor, lease_id)
    lease = summary.pop("lease")
    out = to_response(summary)
    out["leaseId"] = lease.id
    out["monthlyRent"] = money_to_response(lease.rent)
    return out


@router.post("/{lease_id}/escalation")
async def rent_escalation(
    lease_id: str,
    body: RentEscalationRequest,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    lease, escalation, rent_stabilized = await service.rent_escalation(actor, lease_id, body.escalation_rate)
    return {
        "leaseId": lease.id,
        "currentRent": money_to_response(escalation.current_rent),
        "escalationRate": str(escalation.rate_percent),
        "escalationAmount": money_to_response(escalation.escalation_amount),
        "newRent": money_to_response(escalation.new_rent),
        "isRentStabilized": rent_stabilized,
    }
