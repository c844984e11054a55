"""
External collaborators consumed by the service layer: payment gateway, notifier and
background-check provider. Real integrations (Stripe Connect, email/push, Checkr) plug in
behind these Protocols; the sandbox versions below only log and hand back references.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

from models.enums import PaymentType
from services.fee_calculator import estimate_processing_fee
from services.money import Money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayCharge:
    reference: str
    processing_fee: Money


class PaymentGateway(Protocol):
    def create_payment_intent(
        self,
        payment_type: PaymentType,
        amount: Money,
        payer_id: str,
        payee_id: str,
        metadata: dict[str, Any],
    ) -> GatewayCharge: ...

    def refund(self, amount: Money, payee_id: str, metadata: dict[str, Any]) -> GatewayCharge: ...


class Notifier(Protocol):
    def send(self, recipient_id: str, template: str, context: dict[str, Any]) -> None: ...


class BackgroundCheckProvider(Protocol):
    def initiate(self, application_id: str, applicant_id: str) -> str: ...


class SandboxPaymentGateway:
    """Issues ``pi_`` / ``re_`` references; completion arrives later through the payments webhook."""

    def create_payment_intent(self, payment_type, amount, payer_id, payee_id, metadata):
        reference = f"pi_{uuid.uuid4().hex[:24]}"
        fee = estimate_processing_fee(amount)
        logger.info(
            "sandbox payment intent %s type=%s amount=%s payer=%s payee=%s",
            reference,
            getattr(payment_type, "value", payment_type),
            amount.amount,
            payer_id,
            payee_id,
        )
        return GatewayCharge(reference=reference, processing_fee=fee)

    def refund(self, amount, payee_id, metadata):
        reference = f"re_{uuid.uuid4().hex[:24]}"
        logger.info("sandbox refund %s amount=%s payee=%s", reference, amount.amount, payee_id)
        return GatewayCharge(reference=reference, processing_fee=Money.zero(amount.currency))


class LoggingNotifier:
    def send(self, recipient_id, template, context):
        logger.info("notify %s template=%s context=%s", recipient_id, template, context)


class SandboxBackgroundCheckProvider:
    """Returns a check reference; results arrive through the background-check webhook."""

    def initiate(self, application_id, applicant_id):
        reference = f"chk_{uuid.uuid4().hex[:16]}"
        logger.info("sandbox background check %s application=%s applicant=%s", reference, application_id, applicant_id)
        return reference


@dataclass
class Collaborators:
    payments: PaymentGateway = field(default_factory=SandboxPaymentGateway)
    notifier: Notifier = field(default_factory=LoggingNotifier)
    background_checks: BackgroundCheckProvider = field(default_factory=SandboxBackgroundCheckProvider)


_default = Collaborators()


def get_collaborators() -> Collaborators:
    return _default
