from typing import Optional

from pydantic import BaseModel, Field

from models.enums import BackgroundCheckStatus, PaymentStatus
from schemas.common import MoneyInput


class FeePreviewRequest(BaseModel):
    amount: MoneyInput
    currency: Optional[str] = None


class PaymentWebhookEvent(BaseModel):
    """Gateway notification that a payment intent settled, failed or was refunded."""

    gateway_reference: str = Field(..., alias="gatewayReference")
    status: PaymentStatus

    model_config = {"populate_by_name": True}


class BackgroundCheckWebhookEvent(BaseModel):
    reference: str
    status: BackgroundCheckStatus
