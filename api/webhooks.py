"""
Inbound provider events. Completion of payments and background checks arrives here;
nothing in the app polls or schedules timers for them. Every request must carry an
X-Webhook-Signature computed over the raw body with the shared WEBHOOK_SECRET.
"""
from fastapi import APIRouter, Depends

from api.deps import get_service, verify_webhook_signature
from schemas.payment import BackgroundCheckWebhookEvent, PaymentWebhookEvent
from services.leasing import LeasingService

router = APIRouter(
    prefix="/api/webhooks",
    tags=["webhooks"],
    dependencies=[Depends(verify_webhook_signature)],
)


@router.post("/payments")
async def payment_event(body: PaymentWebhookEvent, service: LeasingService = Depends(get_service)):
    payment = await service.record_payment_event(body.gateway_reference, body.status)
    return {"paymentId": payment.id, "status": payment.status}


@router.post("/background-checks")
async def background_check_event(body: BackgroundCheckWebhookEvent, service: LeasingService = Depends(get_service)):
    app = await service.record_background_check_result(body.reference, body.status)
    return {"applicationId": app.id, "backgroundCheckStatus": app.background_check_status}
