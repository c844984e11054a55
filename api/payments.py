from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends

from api.deps import get_actor, get_service
from config import settings
from models import Payment
from schemas.common import to_money
from schemas.payment import FeePreviewRequest
from services import fee_calculator as fees
from services.errors import ValidationFailed
from services.leasing import LeasingService
from services.money import Money
from services.orchestrator import Actor
from utils.case import isoformat, money_to_response, to_response

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _payment_to_response(p: Payment) -> dict[str, Any]:
    currency = p.currency or settings.default_currency
    return {
        "id": p.id,
        "applicationId": p.application_id,
        "leaseId": p.lease_id,
        "payerId": p.payer_id,
        "payeeId": p.payee_id,
        "type": p.type,
        "status": p.status,
        "amount": money_to_response(p.total),
        "platformFee": money_to_response(Money(p.platform_fee, currency)),
        "processingFee": money_to_response(Money(p.processing_fee, currency)),
        "landlordNet": money_to_response(Money(p.landlord_net, currency)),
        "gatewayReference": p.gateway_reference,
        "description": p.description,
        "createdAt": isoformat(p.created_at),
        "updatedAt": isoformat(p.updated_at),
    }


@router.get("/history")
async def payment_history(actor: Actor = Depends(get_actor), service: LeasingService = Depends(get_service)):
    return [_payment_to_response(p) for p in await service.payment_history(actor)]


@router.get("/earnings")
async def earnings(
    currency: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    service: LeasingService = Depends(get_service),
):
    totals = await service.earnings(actor, (currency or settings.default_currency).upper())
    return to_response(totals)


@router.post("/fees/preview")
async def preview_fees(body: FeePreviewRequest):
    amount = to_money(body.amount, body.currency or settings.default_currency)
    if amount.amount <= 0:
        raise ValidationFailed({"amount": "must be greater than zero"})
    breakdown = fees.fee_breakdown(amount, fees.estimate_processing_fee(amount))
    return to_response(
        {
            "total": breakdown.total,
            "platform_fee": breakdown.platform_fee,
            "processing_fee": breakdown.processing_fee,
            "landlord_net": breakdown.landlord_net,
            "platform_fee_rate": settings.platform_fee_rate,
        }
    )
