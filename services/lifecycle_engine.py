"""
State-transition rules for applications, leases, inspections and maintenance requests.

Each entity has an explicit transition table: a status maps to the actions legal from it and
the status each action produces. Anything not in the table raises ``InvalidTransition``.
No I/O; callers pass ``today`` and the lease dates in explicitly.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from models.enums import (
    ApplicationStatus,
    BackgroundCheckStatus,
    InspectionStatus,
    LeaseStatus,
    MaintenanceStatus,
    PaymentStatus,
)
from services.errors import InvalidTransition, PreconditionFailed, ValidationFailed
from services.money import Money


#
# --- Applications ---
#


class ApplicationAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    WITHDRAW = "withdraw"


APPLICATION_TRANSITIONS: dict[ApplicationStatus, dict[ApplicationAction, ApplicationStatus]] = {
    ApplicationStatus.PENDING: {
        ApplicationAction.APPROVE: ApplicationStatus.APPROVED,
        ApplicationAction.REJECT: ApplicationStatus.REJECTED,
        ApplicationAction.WITHDRAW: ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.APPROVED: {},
    ApplicationStatus.REJECTED: {},
    ApplicationStatus.WITHDRAWN: {},
}


def transition_application(current: ApplicationStatus, action: ApplicationAction) -> ApplicationStatus:
    current = ApplicationStatus(current)
    action = ApplicationAction(action)
    target = APPLICATION_TRANSITIONS[current].get(action)
    if target is None:
        raise InvalidTransition(
            "Application",
            current,
            action.value,
            message=f"cannot {action.value} an application that is {current.value}; only PENDING applications can change status",
        )
    return target


def append_landlord_note(existing: Optional[str], note: Optional[str]) -> Optional[str]:
    if not note or not note.strip():
        return existing
    if not existing:
        return note.strip()
    return f"{existing}\n{note.strip()}"


def transition_background_check(
    current: Optional[BackgroundCheckStatus], outcome: BackgroundCheckStatus
) -> BackgroundCheckStatus:
    """
    None/COMPLETED/FAILED -> PENDING starts (or restarts) a check.
    PENDING -> COMPLETED/FAILED records the provider's result.
    """
    current = BackgroundCheckStatus(current) if current is not None else None
    outcome = BackgroundCheckStatus(outcome)
    if outcome == BackgroundCheckStatus.PENDING:
        if current == BackgroundCheckStatus.PENDING:
            raise InvalidTransition(
                "BackgroundCheck", current, "initiate", message="a background check is already in progress"
            )
        return outcome
    if current != BackgroundCheckStatus.PENDING:
        raise InvalidTransition(
            "BackgroundCheck",
            current.value if current else "NOT_STARTED",
            f"record {outcome.value}",
            message=f"cannot record a {outcome.value} result: no background check is in progress",
        )
    return outcome


#
# --- Leases ---
#


@dataclass(frozen=True)
class SendForSignature:
    verb: ClassVar[str] = "send for signature"


@dataclass(frozen=True)
class RecallToDraft:
    verb: ClassVar[str] = "return to draft"


@dataclass(frozen=True)
class Sign:
    verb: ClassVar[str] = "activate"


@dataclass(frozen=True)
class Expire:
    verb: ClassVar[str] = "expire"


@dataclass(frozen=True)
class Terminate:
    termination_date: date
    reason: Optional[str] = None
    refund_deposit: bool = False
    verb: ClassVar[str] = "terminate"


@dataclass(frozen=True)
class Renew:
    new_end_date: date
    new_monthly_rent: Optional[Money] = None
    renewal_terms: Optional[dict[str, Any]] = field(default=None, hash=False, compare=False)
    verb: ClassVar[str] = "renew"


LeaseAction = Union[SendForSignature, RecallToDraft, Sign, Expire, Terminate, Renew]

# Renew leaves the original lease ACTIVE; the renewal itself is a new DRAFT lease.
LEASE_TRANSITIONS: dict[LeaseStatus, dict[type, LeaseStatus]] = {
    LeaseStatus.DRAFT: {
        SendForSignature: LeaseStatus.PENDING_SIGNATURE,
    },
    LeaseStatus.PENDING_SIGNATURE: {
        Sign: LeaseStatus.ACTIVE,
        RecallToDraft: LeaseStatus.DRAFT,
        Terminate: LeaseStatus.TERMINATED,
    },
    LeaseStatus.ACTIVE: {
        Expire: LeaseStatus.EXPIRED,
        Terminate: LeaseStatus.TERMINATED,
        Renew: LeaseStatus.ACTIVE,
    },
    LeaseStatus.EXPIRED: {},
    LeaseStatus.TERMINATED: {},
}

# Statuses reachable through a plain status update (no arguments needed).
STATUS_UPDATE_ACTIONS: dict[LeaseStatus, type] = {
    LeaseStatus.PENDING_SIGNATURE: SendForSignature,
    LeaseStatus.DRAFT: RecallToDraft,
    LeaseStatus.ACTIVE: Sign,
    LeaseStatus.EXPIRED: Expire,
}


@dataclass(frozen=True)
class LeaseContext:
    today: date
    start_date: date
    end_date: date


def allowed_lease_actions(current: LeaseStatus) -> list[str]:
    return [a.verb for a in LEASE_TRANSITIONS[LeaseStatus(current)]]


def transition_lease(current: LeaseStatus, action: LeaseAction, context: LeaseContext) -> LeaseStatus:
    current = LeaseStatus(current)
    target = LEASE_TRANSITIONS[current].get(type(action))
    if target is None:
        allowed = allowed_lease_actions(current)
        hint = f"allowed: {', '.join(allowed)}" if allowed else "the lease is closed"
        raise InvalidTransition(
            "Lease", current, action.verb, message=f"cannot {action.verb} a {current.value} lease ({hint})"
        )

    if isinstance(action, Expire) and not context.end_date < context.today:
        raise PreconditionFailed(
            f"lease runs until {context.end_date.isoformat()} and cannot expire before then",
            end_date=context.end_date.isoformat(),
        )
    if isinstance(action, Terminate):
        check_termination_date(action.termination_date, context)
    if isinstance(action, Renew):
        check_renewal(context.end_date, action.new_end_date)
    return target


def status_update_action(current: LeaseStatus, new_status: LeaseStatus) -> LeaseAction:
    """Resolve a requested status change to the single engine action that performs it."""
    current = LeaseStatus(current)
    new_status = LeaseStatus(new_status)
    if new_status == LeaseStatus.TERMINATED:
        raise ValidationFailed({"status": "use the terminate operation to end a lease"})
    action_type = STATUS_UPDATE_ACTIONS[new_status]
    if LEASE_TRANSITIONS[current].get(action_type) != new_status:
        raise InvalidTransition(
            "Lease",
            current,
            f"move to {new_status.value}",
            message=f"cannot move a {current.value} lease to {new_status.value}",
        )
    return action_type()


def check_termination_date(termination_date: date, context: LeaseContext) -> None:
    if termination_date < context.today:
        raise PreconditionFailed(
            "termination date cannot be in the past",
            termination_date=termination_date.isoformat(),
            today=context.today.isoformat(),
        )
    if termination_date > context.end_date:
        raise PreconditionFailed(
            "termination date cannot be after the lease end date",
            termination_date=termination_date.isoformat(),
            end_date=context.end_date.isoformat(),
        )


def add_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def check_renewal(end_date: date, new_end_date: date, min_extension_months: int = 0) -> None:
    if new_end_date <= end_date:
        raise PreconditionFailed(
            "renewal end date must be after the current lease end date",
            end_date=end_date.isoformat(),
            new_end_date=new_end_date.isoformat(),
        )
    if min_extension_months > 0:
        earliest = add_months(end_date, min_extension_months)
        if new_end_date < earliest:
            raise PreconditionFailed(
                f"renewal must extend the lease by at least {min_extension_months} month(s)",
                earliest_end_date=earliest.isoformat(),
                new_end_date=new_end_date.isoformat(),
            )


def create_lease_status(application_status: ApplicationStatus, lease_exists: bool) -> LeaseStatus:
    application_status = ApplicationStatus(application_status)
    if application_status != ApplicationStatus.APPROVED:
        raise PreconditionFailed(
            f"can only create leases from approved applications (application is {application_status.value})",
            application_status=application_status.value,
        )
    if lease_exists:
        raise PreconditionFailed("a lease already exists for this application")
    return LeaseStatus.DRAFT


#
# --- Inspections / maintenance / payments ---
#

INSPECTION_TRANSITIONS: dict[InspectionStatus, frozenset[InspectionStatus]] = {
    InspectionStatus.SCHEDULED: frozenset({InspectionStatus.IN_PROGRESS, InspectionStatus.CANCELLED}),
    InspectionStatus.IN_PROGRESS: frozenset({InspectionStatus.COMPLETED, InspectionStatus.CANCELLED}),
    InspectionStatus.COMPLETED: frozenset(),
    InspectionStatus.CANCELLED: frozenset(),
}

MAINTENANCE_TRANSITIONS: dict[MaintenanceStatus, frozenset[MaintenanceStatus]] = {
    MaintenanceStatus.OPEN: frozenset({MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.CANCELLED}),
    MaintenanceStatus.IN_PROGRESS: frozenset({MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED}),
    MaintenanceStatus.COMPLETED: frozenset(),
    MaintenanceStatus.CANCELLED: frozenset(),
}


def transition_status(entity: str, table: dict, current: Enum, target: Enum) -> Enum:
    if target not in table[current]:
        raise InvalidTransition(
            entity,
            current,
            f"move to {target.value}",
            message=f"cannot move a {current.value} {entity.lower()} to {target.value}",
        )
    return target


PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}
