"""
Side-effect requests emitted by the orchestrator. The service layer fulfils them
(activity rows, property status, payment gateway, notifier, background-check provider).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from models.enums import PaymentType, PropertyStatus
from services.money import Money


@dataclass(frozen=True)
class RecordActivity:
    actor_id: str
    action: str
    entity: str
    entity_id: str
    details: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class UpdatePropertyStatus:
    property_id: str
    status: PropertyStatus


@dataclass(frozen=True)
class SendNotification:
    recipient_id: str
    template: str
    context: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class CreatePaymentIntent:
    payment_type: PaymentType
    amount: Money
    payer_id: str
    payee_id: str
    application_id: Optional[str] = None
    lease_id: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class RefundDeposit:
    lease_id: str
    amount: Money
    payer_id: str
    payee_id: str


@dataclass(frozen=True)
class InitiateBackgroundCheck:
    application_id: str
    applicant_id: str


Intent = Union[
    RecordActivity,
    UpdatePropertyStatus,
    SendNotification,
    CreatePaymentIntent,
    RefundDeposit,
    InitiateBackgroundCheck,
]


@dataclass
class Outcome:
    """Result of one orchestrated command: the affected entity plus the side effects it requests."""

    entity: Any
    intents: list[Intent] = field(default_factory=list)
    created: bool = False

    def of_type(self, kind: type) -> list:
        return [i for i in self.intents if isinstance(i, kind)]
