"""
Lifecycle orchestrator: the single entry point for application, lease, payment,
inspection and maintenance commands.

For each command it authorizes the explicit ``Actor``, checks the optimistic-concurrency
version and entity preconditions, applies the engine transition to the in-memory entity,
and returns an ``Outcome`` listing the side effects to perform. It never touches the
database or any external service; ``services.leasing`` does that.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from config import settings
from models import Inspection, Lease, MaintenanceRequest, Payment, Property, RentalApplication, Vendor
from models.enums import (
    ActorRole,
    ApplicationStatus,
    BackgroundCheckStatus,
    InspectionStatus,
    LeaseStatus,
    MaintenancePriority,
    MaintenanceStatus,
    PaymentStatus,
    PaymentType,
    PropertyStatus,
)
from services import lifecycle_engine as engine
from services.errors import AuthorizationError, ConcurrencyConflict, PreconditionFailed, ValidationFailed
from services.intents import (
    CreatePaymentIntent,
    InitiateBackgroundCheck,
    Outcome,
    RecordActivity,
    RefundDeposit,
    SendNotification,
    UpdatePropertyStatus,
)
from services.money import Money

logger = logging.getLogger(__name__)

SYSTEM_ACTOR_ID = "system"
LANDLORD_ROLES = (ActorRole.LANDLORD, ActorRole.PROPERTY_MANAGER)


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


SYSTEM_ACTOR = Actor(id=SYSTEM_ACTOR_ID, role=ActorRole.ADMIN)


@dataclass
class ApplicationDraft:
    """Renter-supplied application data, already normalized to snake_case."""

    move_in_date: Optional[date]
    monthly_income: Optional[Money]
    employment_info: dict[str, Any] = field(default_factory=dict)
    references: list[dict[str, Any]] = field(default_factory=list)
    documents: dict[str, Any] = field(default_factory=dict)
    credit_check_consent: bool = False
    background_check_consent: bool = False
    notes: Optional[str] = None


def validate_application_draft(draft: ApplicationDraft, today: date) -> dict[str, str]:
    """Return field-path -> problem for everything missing or invalid in a submission."""
    errors: dict[str, str] = {}
    if draft.move_in_date is None:
        errors["moveInDate"] = "is required"
    elif draft.move_in_date < today:
        errors["moveInDate"] = "cannot be in the past"
    if draft.monthly_income is None or not draft.monthly_income.is_positive():
        errors["monthlyIncome"] = "must be greater than zero"

    emp = draft.employment_info or {}
    if not emp.get("employer"):
        errors["employmentInfo.employer"] = "is required"
    if not emp.get("position"):
        errors["employmentInfo.position"] = "is required"
    years = emp.get("years_employed")
    if not isinstance(years, (int, float)) or years <= 0:
        errors["employmentInfo.yearsEmployed"] = "must be greater than zero"

    docs = draft.documents or {}
    if not docs.get("id_document"):
        errors["documents.idDocument"] = "an identity document is required"
    if not docs.get("pay_stubs"):
        errors["documents.payStubs"] = "at least one pay stub is required"

    for i, ref in enumerate(draft.references or []):
        for key, label in (("name", "name"), ("relationship", "relationship"), ("phone", "phone")):
            if not (ref or {}).get(key):
                errors[f"references[{i}].{label}"] = "is required"

    if not draft.credit_check_consent:
        errors["creditCheckConsent"] = "must be accepted"
    if not draft.background_check_consent:
        errors["backgroundCheckConsent"] = "must be accepted"
    return errors


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleOrchestrator:
    def __init__(
        self,
        today: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
        renewal_min_extension_months: Optional[int] = None,
    ) -> None:
        self._today = today or date.today
        self._now = now or _utcnow
        self.renewal_min_extension_months = (
            settings.renewal_min_extension_months
            if renewal_min_extension_months is None
            else renewal_min_extension_months
        )

    def today(self) -> date:
        return self._today()

    def now(self) -> datetime:
        return self._now()

    #
    # --- guards ---
    #

    @staticmethod
    def require_landlord(actor: Actor, prop: Property) -> None:
        if actor.is_admin:
            return
        if actor.role in LANDLORD_ROLES and prop.owner_id == actor.id:
            return
        raise AuthorizationError(
            "only the property owner or an administrator can perform this action",
            actor_id=actor.id,
            property_id=prop.id,
        )

    @staticmethod
    def check_version(entity_name: str, entity: Any, expected_version: Optional[int]) -> None:
        if expected_version is not None and entity.version != expected_version:
            raise ConcurrencyConflict(entity_name, entity.id, expected=expected_version, actual=entity.version)

    def _lease_context(self, lease: Lease) -> engine.LeaseContext:
        return engine.LeaseContext(today=self.today(), start_date=lease.start_date, end_date=lease.end_date)

    def _log(self, entity: str, entity_id: str, old: Any, new: Any, actor: Actor) -> None:
        logger.info(
            "%s %s: %s -> %s actor=%s role=%s",
            entity,
            entity_id,
            getattr(old, "value", old),
            getattr(new, "value", new),
            actor.id,
            actor.role.value,
        )

    #
    # --- applications ---
    #

    def submit_application(
        self, actor: Actor, prop: Property, already_applied: bool, draft: ApplicationDraft
    ) -> Outcome:
        if actor.role != ActorRole.RENTER:
            raise AuthorizationError("only renters can submit applications", actor_id=actor.id)
        errors = validate_application_draft(draft, self.today())
        if not errors and draft.monthly_income.currency != prop.currency:
            errors["monthlyIncome"] = f"must be in {prop.currency}"
        if errors:
            raise ValidationFailed(errors)
        if PropertyStatus(prop.status) != PropertyStatus.AVAILABLE:
            raise PreconditionFailed("property is not available for rent", property_status=prop.status)
        if already_applied:
            raise PreconditionFailed("you have already applied for this property", property_id=prop.id)

        now = self._now()
        application = RentalApplication(
            id=_new_id("app"),
            property_id=prop.id,
            applicant_id=actor.id,
            status=ApplicationStatus.PENDING.value,
            move_in_date=draft.move_in_date,
            monthly_income=draft.monthly_income.amount,
            currency=draft.monthly_income.currency,
            employment_info=dict(draft.employment_info),
            references=[dict(r) for r in draft.references],
            documents=dict(draft.documents),
            credit_check_consent=draft.credit_check_consent,
            background_check_consent=draft.background_check_consent,
            background_check_status=None,
            notes=draft.notes,
            created_at=now,
            updated_at=now,
        )
        logger.info("application %s submitted for property %s by %s", application.id, prop.id, actor.id)
        return Outcome(
            entity=application,
            created=True,
            intents=[
                SendNotification(prop.owner_id, "application.submitted", {"application_id": application.id, "property_id": prop.id}),
                RecordActivity(actor.id, "SUBMIT_APPLICATION", "Application", application.id, {"property_id": prop.id}),
            ],
        )

    def update_application_status(
        self,
        actor: Actor,
        application: RentalApplication,
        prop: Property,
        status: ApplicationStatus,
        notes: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        status = ApplicationStatus(status)
        if status == ApplicationStatus.APPROVED:
            return self.approve_application(actor, application, prop, notes, expected_version)
        if status == ApplicationStatus.REJECTED:
            return self.reject_application(actor, application, prop, notes, expected_version)
        raise ValidationFailed({"status": "must be APPROVED or REJECTED"})

    def approve_application(
        self,
        actor: Actor,
        application: RentalApplication,
        prop: Property,
        notes: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        self.require_landlord(actor, prop)
        self.check_version("Application", application, expected_version)
        old = application.status
        new = engine.transition_application(old, engine.ApplicationAction.APPROVE)
        if PropertyStatus(prop.status) != PropertyStatus.AVAILABLE:
            raise PreconditionFailed(
                "property no longer has open availability", property_id=prop.id, property_status=prop.status
            )
        application.status = new.value
        application.landlord_notes = engine.append_landlord_note(application.landlord_notes, notes)
        application.updated_at = self._now()
        self._log("application", application.id, old, new, actor)
        return Outcome(
            entity=application,
            intents=[
                UpdatePropertyStatus(prop.id, PropertyStatus.PENDING),
                SendNotification(application.applicant_id, "application.approved", {"application_id": application.id}),
                RecordActivity(actor.id, "APPROVE_APPLICATION", "Application", application.id, {"property_id": prop.id}),
            ],
        )

    def reject_application(
        self,
        actor: Actor,
        application: RentalApplication,
        prop: Property,
        reason: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        self.require_landlord(actor, prop)
        self.check_version("Application", application, expected_version)
        old = application.status
        new = engine.transition_application(old, engine.ApplicationAction.REJECT)
        application.status = new.value
        application.landlord_notes = engine.append_landlord_note(application.landlord_notes, reason)
        application.updated_at = self._now()
        self._log("application", application.id, old, new, actor)
        return Outcome(
            entity=application,
            intents=[
                SendNotification(
                    application.applicant_id,
                    "application.rejected",
                    {"application_id": application.id, "reason": reason},
                ),
                RecordActivity(actor.id, "REJECT_APPLICATION", "Application", application.id, {"reason": reason}),
            ],
        )

    def withdraw_application(
        self,
        actor: Actor,
        application: RentalApplication,
        prop: Property,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        if application.applicant_id != actor.id:
            raise AuthorizationError("only the applicant can withdraw an application", actor_id=actor.id)
        self.check_version("Application", application, expected_version)
        old = application.status
        new = engine.transition_application(old, engine.ApplicationAction.WITHDRAW)
        application.status = new.value
        application.updated_at = self._now()
        self._log("application", application.id, old, new, actor)
        return Outcome(
            entity=application,
            intents=[
                SendNotification(prop.owner_id, "application.withdrawn", {"application_id": application.id}),
                RecordActivity(actor.id, "WITHDRAW_APPLICATION", "Application", application.id),
            ],
        )

    def initiate_background_check(
        self, actor: Actor, application: RentalApplication, prop: Property
    ) -> Outcome:
        self.require_landlord(actor, prop)
        if not application.background_check_consent:
            raise PreconditionFailed("applicant has not consented to a background check")
        if ApplicationStatus(application.status) != ApplicationStatus.PENDING:
            raise PreconditionFailed(
                f"background checks can only run on PENDING applications (application is {application.status})"
            )
        old = application.background_check_status
        new = engine.transition_background_check(old, BackgroundCheckStatus.PENDING)
        application.background_check_status = new.value
        application.updated_at = self._now()
        self._log("background check", application.id, old or "NOT_STARTED", new, actor)
        return Outcome(
            entity=application,
            intents=[
                InitiateBackgroundCheck(application.id, application.applicant_id),
                CreatePaymentIntent(
                    PaymentType.BACKGROUND_CHECK_FEE,
                    Money(settings.background_check_fee, application.currency),
                    payer_id=application.applicant_id,
                    payee_id=prop.owner_id,
                    application_id=application.id,
                    description="Background check processing fee",
                ),
                RecordActivity(actor.id, "INITIATE_BACKGROUND_CHECK", "Application", application.id),
            ],
        )

    def record_background_check_result(
        self,
        application: RentalApplication,
        prop: Property,
        status: BackgroundCheckStatus,
        reference: Optional[str] = None,
    ) -> Outcome:
        if reference and application.background_check_reference and reference != application.background_check_reference:
            raise PreconditionFailed(
                "background check reference does not match the application",
                expected=application.background_check_reference,
                received=reference,
            )
        old = application.background_check_status
        new = engine.transition_background_check(old, status)
        application.background_check_status = new.value
        application.updated_at = self._now()
        self._log("background check", application.id, old or "NOT_STARTED", new, SYSTEM_ACTOR)
        return Outcome(
            entity=application,
            intents=[
                SendNotification(
                    prop.owner_id,
                    "background_check.updated",
                    {"application_id": application.id, "status": new.value},
                ),
                RecordActivity(SYSTEM_ACTOR_ID, "BACKGROUND_CHECK_RESULT", "Application", application.id, {"status": new.value}),
            ],
        )

    #
    # --- leases ---
    #

    def create_lease(
        self,
        actor: Actor,
        application: RentalApplication,
        prop: Property,
        lease_exists: bool,
        start_date: date,
        end_date: date,
        monthly_rent: Money,
        security_deposit: Money,
        terms: Optional[dict[str, Any]] = None,
    ) -> Outcome:
        self.require_landlord(actor, prop)
        status = engine.create_lease_status(application.status, lease_exists)

        errors: dict[str, str] = {}
        if end_date <= start_date:
            errors["endDate"] = "must be after startDate"
        if not monthly_rent.is_positive():
            errors["monthlyRent"] = "must be greater than zero"
        if security_deposit.amount < 0:
            errors["securityDeposit"] = "must not be negative"
        if security_deposit.currency != monthly_rent.currency:
            errors["securityDeposit"] = "must use the same currency as monthlyRent"
        if errors:
            raise ValidationFailed(errors)

        now = self._now()
        lease = Lease(
            id=_new_id("lease"),
            application_id=application.id,
            property_id=prop.id,
            tenant_id=application.applicant_id,
            landlord_id=prop.owner_id,
            status=status.value,
            start_date=start_date,
            end_date=end_date,
            monthly_rent=monthly_rent.amount,
            security_deposit=security_deposit.amount,
            currency=monthly_rent.currency,
            terms=dict(terms or {}),
            created_at=now,
            updated_at=now,
        )
        intents = []
        if security_deposit.is_positive():
            intents.append(
                CreatePaymentIntent(
                    PaymentType.SECURITY_DEPOSIT,
                    security_deposit,
                    payer_id=lease.tenant_id,
                    payee_id=lease.landlord_id,
                    application_id=application.id,
                    lease_id=lease.id,
                    description="Security deposit",
                )
            )
        intents.append(
            CreatePaymentIntent(
                PaymentType.FIRST_MONTH_RENT,
                monthly_rent,
                payer_id=lease.tenant_id,
                payee_id=lease.landlord_id,
                application_id=application.id,
                lease_id=lease.id,
                description="First month's rent",
            )
        )
        intents.append(SendNotification(lease.tenant_id, "lease.created", {"lease_id": lease.id}))
        intents.append(
            RecordActivity(
                actor.id,
                "CREATE_LEASE",
                "Lease",
                lease.id,
                {
                    "application_id": application.id,
                    "property_id": prop.id,
                    "tenant_id": lease.tenant_id,
                    "monthly_rent": monthly_rent.amount,
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                },
            )
        )
        logger.info("lease %s drafted from application %s", lease.id, application.id)
        return Outcome(entity=lease, created=True, intents=intents)

    def update_lease(
        self,
        actor: Actor,
        lease: Lease,
        prop: Property,
        new_status: Optional[LeaseStatus] = None,
        document_url: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        self.require_landlord(actor, prop)
        self.check_version("Lease", lease, expected_version)
        if new_status is None and document_url is None:
            raise ValidationFailed({"status": "provide a new status or a documentUrl"})

        intents = []
        details: dict[str, Any] = {}
        if document_url is not None:
            lease.document_url = document_url
            details["document_url"] = document_url
        if new_status is not None:
            old = LeaseStatus(lease.status)
            action = engine.status_update_action(old, new_status)
            new = engine.transition_lease(old, action, self._lease_context(lease))
            lease.status = new.value
            details["status"] = new.value
            if new == LeaseStatus.ACTIVE:
                lease.signed_at = self._now()
                intents.append(UpdatePropertyStatus(prop.id, PropertyStatus.RENTED))
                intents.append(SendNotification(lease.landlord_id, "lease.activated", {"lease_id": lease.id}))
            elif new == LeaseStatus.PENDING_SIGNATURE:
                intents.append(SendNotification(lease.tenant_id, "lease.ready_for_signature", {"lease_id": lease.id}))
            self._log("lease", lease.id, old, new, actor)
        lease.updated_at = self._now()
        intents.append(RecordActivity(actor.id, "UPDATE_LEASE", "Lease", lease.id, details))
        return Outcome(entity=lease, intents=intents)

    def terminate_lease(
        self,
        actor: Actor,
        lease: Lease,
        prop: Property,
        termination_date: date,
        reason: Optional[str] = None,
        refund_deposit: bool = False,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        if lease.tenant_id != actor.id:
            self.require_landlord(actor, prop)
        self.check_version("Lease", lease, expected_version)
        old = LeaseStatus(lease.status)
        action = engine.Terminate(termination_date=termination_date, reason=reason, refund_deposit=refund_deposit)
        new = engine.transition_lease(old, action, self._lease_context(lease))

        now = self._now()
        lease.status = new.value
        lease.terms = {
            **(lease.terms or {}),
            "termination_reason": reason,
            "termination_date": termination_date.isoformat(),
            "terminated_by": actor.id,
            "terminated_at": now.isoformat(),
            "refund_deposit": refund_deposit,
        }
        lease.updated_at = now
        lease.terminated_at = now
        self._log("lease", lease.id, old, new, actor)

        other_party = lease.landlord_id if actor.id == lease.tenant_id else lease.tenant_id
        intents = []
        if refund_deposit and lease.deposit.is_positive():
            intents.append(RefundDeposit(lease.id, lease.deposit, payer_id=lease.landlord_id, payee_id=lease.tenant_id))
        intents.append(
            SendNotification(
                other_party,
                "lease.terminated",
                {"lease_id": lease.id, "termination_date": termination_date.isoformat(), "reason": reason},
            )
        )
        intents.append(
            RecordActivity(
                actor.id,
                "TERMINATE_LEASE",
                "Lease",
                lease.id,
                {"termination_date": termination_date.isoformat(), "reason": reason, "refund_deposit": refund_deposit},
            )
        )
        if not lease.superseded_by_id:
            intents.insert(0, UpdatePropertyStatus(lease.property_id, PropertyStatus.AVAILABLE))
        return Outcome(entity=lease, intents=intents)

    def renew_lease(
        self,
        actor: Actor,
        lease: Lease,
        prop: Property,
        new_end_date: date,
        new_monthly_rent: Optional[Money] = None,
        renewal_terms: Optional[dict[str, Any]] = None,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        """Create the successor lease. The original keeps its status and gains a ``superseded_by_id`` link."""
        self.require_landlord(actor, prop)
        self.check_version("Lease", lease, expected_version)
        if lease.superseded_by_id:
            raise PreconditionFailed("lease has already been renewed", renewal_lease_id=lease.superseded_by_id)
        action = engine.Renew(new_end_date=new_end_date, new_monthly_rent=new_monthly_rent, renewal_terms=renewal_terms)
        engine.transition_lease(lease.status, action, self._lease_context(lease))
        engine.check_renewal(lease.end_date, new_end_date, self.renewal_min_extension_months)

        rent = new_monthly_rent if new_monthly_rent is not None else lease.rent
        if not rent.is_positive():
            raise ValidationFailed({"newMonthlyRent": "must be greater than zero"})
        if rent.currency != lease.rent.currency:
            raise ValidationFailed({"newMonthlyRent": f"must be in {lease.currency}"})

        now = self._now()
        renewal = Lease(
            id=_new_id("lease"),
            application_id=lease.application_id,
            property_id=lease.property_id,
            tenant_id=lease.tenant_id,
            landlord_id=lease.landlord_id,
            status=LeaseStatus.DRAFT.value,
            start_date=lease.end_date,
            end_date=new_end_date,
            monthly_rent=rent.amount,
            security_deposit=lease.security_deposit,
            currency=lease.currency,
            terms={
                **(lease.terms or {}),
                **(renewal_terms or {}),
                "is_renewal": True,
                "previous_lease_id": lease.id,
                "renewed_at": now.isoformat(),
            },
            supersedes_id=lease.id,
            created_at=now,
            updated_at=now,
        )
        lease.superseded_by_id = renewal.id
        lease.updated_at = now
        logger.info("lease %s renewed as %s until %s actor=%s", lease.id, renewal.id, new_end_date, actor.id)
        return Outcome(
            entity=renewal,
            created=True,
            intents=[
                SendNotification(lease.tenant_id, "lease.renewal_offered", {"lease_id": renewal.id, "previous_lease_id": lease.id}),
                RecordActivity(
                    actor.id,
                    "CREATE_LEASE_RENEWAL",
                    "Lease",
                    renewal.id,
                    {
                        "original_lease_id": lease.id,
                        "new_end_date": new_end_date.isoformat(),
                        "new_monthly_rent": rent.amount,
                        "renewal_terms": renewal_terms,
                    },
                ),
            ],
        )

    def expire_lease(self, lease: Lease) -> Outcome:
        old = LeaseStatus(lease.status)
        new = engine.transition_lease(old, engine.Expire(), self._lease_context(lease))
        lease.status = new.value
        lease.updated_at = self._now()
        self._log("lease", lease.id, old, new, SYSTEM_ACTOR)
        intents = [
            SendNotification(lease.landlord_id, "lease.expired", {"lease_id": lease.id}),
            RecordActivity(SYSTEM_ACTOR_ID, "EXPIRE_LEASE", "Lease", lease.id, {"end_date": lease.end_date.isoformat()}),
        ]
        # A renewed lease hands the unit straight to its successor.
        if not lease.superseded_by_id:
            intents.insert(0, UpdatePropertyStatus(lease.property_id, PropertyStatus.AVAILABLE))
        return Outcome(entity=lease, intents=intents)

    #
    # --- payments ---
    #

    def record_payment_event(self, payment: Payment, status: PaymentStatus) -> Outcome:
        old = PaymentStatus(payment.status)
        new = engine.transition_status("Payment", engine.PAYMENT_TRANSITIONS, old, PaymentStatus(status))
        payment.status = new.value
        payment.updated_at = self._now()
        self._log("payment", payment.id, old, new, SYSTEM_ACTOR)
        intents = []
        if new == PaymentStatus.COMPLETED:
            intents.append(SendNotification(payment.payee_id, "payment.received", {"payment_id": payment.id}))
        elif new == PaymentStatus.FAILED:
            intents.append(SendNotification(payment.payer_id, "payment.failed", {"payment_id": payment.id}))
        intents.append(RecordActivity(SYSTEM_ACTOR_ID, f"PAYMENT_{new.value}", "Payment", payment.id))
        return Outcome(entity=payment, intents=intents)

    #
    # --- inspections / maintenance ---
    #

    def schedule_inspection(
        self,
        actor: Actor,
        prop: Property,
        scheduled_for: datetime,
        inspector_id: Optional[str] = None,
        lease_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Outcome:
        self.require_landlord(actor, prop)
        now = self._now()
        inspection = Inspection(
            id=_new_id("insp"),
            property_id=prop.id,
            lease_id=lease_id,
            inspector_id=inspector_id,
            scheduled_for=scheduled_for,
            status=InspectionStatus.SCHEDULED.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        return Outcome(
            entity=inspection,
            created=True,
            intents=[RecordActivity(actor.id, "SCHEDULE_INSPECTION", "Inspection", inspection.id, {"property_id": prop.id})],
        )

    def update_inspection_status(
        self,
        actor: Actor,
        inspection: Inspection,
        prop: Property,
        status: InspectionStatus,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        if not (inspection.inspector_id and inspection.inspector_id == actor.id):
            self.require_landlord(actor, prop)
        self.check_version("Inspection", inspection, expected_version)
        old = InspectionStatus(inspection.status)
        new = engine.transition_status("Inspection", engine.INSPECTION_TRANSITIONS, old, InspectionStatus(status))
        inspection.status = new.value
        inspection.updated_at = self._now()
        self._log("inspection", inspection.id, old, new, actor)
        return Outcome(
            entity=inspection,
            intents=[RecordActivity(actor.id, "UPDATE_INSPECTION", "Inspection", inspection.id, {"status": new.value})],
        )

    def open_maintenance_request(
        self,
        actor: Actor,
        prop: Property,
        has_active_lease: bool,
        title: str,
        description: Optional[str] = None,
        priority: MaintenancePriority = MaintenancePriority.MEDIUM,
    ) -> Outcome:
        if actor.role == ActorRole.RENTER:
            if not has_active_lease:
                raise AuthorizationError("only tenants with an active lease can open maintenance requests")
        else:
            self.require_landlord(actor, prop)
        if not title or not title.strip():
            raise ValidationFailed({"title": "is required"})
        now = self._now()
        request = MaintenanceRequest(
            id=_new_id("mnt"),
            property_id=prop.id,
            tenant_id=actor.id,
            title=title.strip(),
            description=description,
            priority=MaintenancePriority(priority).value,
            status=MaintenanceStatus.OPEN.value,
            created_at=now,
            updated_at=now,
        )
        intents = [RecordActivity(actor.id, "OPEN_MAINTENANCE_REQUEST", "MaintenanceRequest", request.id)]
        if actor.id != prop.owner_id:
            intents.insert(
                0,
                SendNotification(prop.owner_id, "maintenance.opened", {"request_id": request.id, "priority": request.priority}),
            )
        return Outcome(entity=request, created=True, intents=intents)

    def update_maintenance_status(
        self,
        actor: Actor,
        request: MaintenanceRequest,
        prop: Property,
        status: MaintenanceStatus,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        status = MaintenanceStatus(status)
        requester_cancelling = actor.id == request.tenant_id and status == MaintenanceStatus.CANCELLED
        if not requester_cancelling:
            self.require_landlord(actor, prop)
        self.check_version("MaintenanceRequest", request, expected_version)
        old = MaintenanceStatus(request.status)
        new = engine.transition_status("MaintenanceRequest", engine.MAINTENANCE_TRANSITIONS, old, status)
        request.status = new.value
        request.updated_at = self._now()
        self._log("maintenance request", request.id, old, new, actor)
        intents = [RecordActivity(actor.id, "UPDATE_MAINTENANCE_REQUEST", "MaintenanceRequest", request.id, {"status": new.value})]
        if actor.id != request.tenant_id:
            intents.insert(0, SendNotification(request.tenant_id, "maintenance.updated", {"request_id": request.id, "status": new.value}))
        return Outcome(entity=request, intents=intents)

    def assign_vendor(
        self,
        actor: Actor,
        request: MaintenanceRequest,
        prop: Property,
        vendor: Optional[Vendor],
        notes: Optional[str] = None,
        estimate: Optional[Money] = None,
        expected_version: Optional[int] = None,
    ) -> Outcome:
        """Assign (or with ``vendor=None`` clear) the contractor on an open request."""
        self.require_landlord(actor, prop)
        self.check_version("MaintenanceRequest", request, expected_version)
        status = MaintenanceStatus(request.status)
        if status in (MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED):
            raise PreconditionFailed(
                f"cannot assign a vendor to a {status.value} maintenance request", request_id=request.id
            )
        if vendor is not None:
            if not vendor.is_active:
                raise PreconditionFailed("vendor is inactive", vendor_id=vendor.id)
            if vendor.added_by_id != prop.owner_id and not actor.is_admin:
                raise AuthorizationError("vendor belongs to another landlord", actor_id=actor.id, vendor_id=vendor.id)
        elif estimate is not None:
            raise ValidationFailed({"vendorEstimate": "requires a vendor"})
        if estimate is not None and estimate.amount < 0:
            raise ValidationFailed({"vendorEstimate": "cannot be negative"})

        previous = request.assigned_vendor_id
        request.assigned_vendor_id = vendor.id if vendor is not None else None
        request.vendor_notes = notes
        request.vendor_estimate = estimate.amount if estimate is not None else None
        request.vendor_estimate_currency = estimate.currency if estimate is not None else None
        request.updated_at = self._now()
        logger.info(
            "maintenance request %s: vendor %s -> %s actor=%s", request.id, previous, request.assigned_vendor_id, actor.id
        )
        action = "ASSIGN_VENDOR" if vendor is not None else "UNASSIGN_VENDOR"
        intents = [
            RecordActivity(actor.id, action, "MaintenanceRequest", request.id, {"vendor_id": request.assigned_vendor_id})
        ]
        if vendor is not None and request.tenant_id != actor.id:
            intents.insert(
                0,
                SendNotification(
                    request.tenant_id,
                    "maintenance.vendor_assigned",
                    {"request_id": request.id, "vendor": vendor.company_name},
                ),
            )
        return Outcome(entity=request, intents=intents)
