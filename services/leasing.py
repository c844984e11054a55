"""
Persistence-backed service layer.

Each command loads the entities it needs, hands them to the ``LifecycleOrchestrator``,
flushes the result (the versioned UPDATE is the optimistic-concurrency check) and then
fulfils the outcome's intents through the collaborators. Any collaborator failure is
wrapped in ``ExternalServiceError`` and fails the whole request; ``get_db`` rolls back.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from models import (
    ActivityLog,
    Inspection,
    Lease,
    MaintenanceRequest,
    Payment,
    Property,
    RentalApplication,
    Vendor,
)
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
from services import fee_calculator as fees
from services.collaborators import Collaborators
from services.errors import AuthorizationError, ConcurrencyConflict, ExternalServiceError, NotFound, ValidationFailed
from services.intents import (
    CreatePaymentIntent,
    InitiateBackgroundCheck,
    Intent,
    Outcome,
    RecordActivity,
    RefundDeposit,
    SendNotification,
    UpdatePropertyStatus,
)
from services.money import Money
from services.orchestrator import LANDLORD_ROLES, Actor, ApplicationDraft, LifecycleOrchestrator

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class LeasingService:
    def __init__(
        self,
        session: AsyncSession,
        collaborators: Collaborators,
        orchestrator: Optional[LifecycleOrchestrator] = None,
    ) -> None:
        self.session = session
        self.collaborators = collaborators
        self.orchestrator = orchestrator or LifecycleOrchestrator()

    #
    # --- plumbing ---
    #

    async def _get(self, model: type, entity_id: str, name: str) -> Any:
        entity = await self.session.get(model, entity_id)
        if entity is None:
            raise NotFound(name, entity_id)
        return entity

    async def _flush(self, outcome: Outcome) -> None:
        try:
            await self.session.flush()
        except StaleDataError as e:
            entity = outcome.entity
            raise ConcurrencyConflict(type(entity).__name__, getattr(entity, "id", "?")) from e

    async def _apply(self, outcome: Outcome) -> Any:
        if outcome.created:
            self.session.add(outcome.entity)
        await self._flush(outcome)
        await self._dispatch(outcome.intents)
        await self._flush(outcome)
        return outcome.entity

    def _call(self, service: str, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logger.exception("%s failed during %s", service, operation)
            raise ExternalServiceError(service, operation, e) from e

    async def _dispatch(self, intents: Sequence[Intent]) -> None:
        for intent in intents:
            if isinstance(intent, RecordActivity):
                self.session.add(
                    ActivityLog(
                        id=_new_id("act"),
                        actor_id=intent.actor_id,
                        action=intent.action,
                        entity=intent.entity,
                        entity_id=intent.entity_id,
                        details=intent.details or None,
                        created_at=self.orchestrator.now(),
                    )
                )
            elif isinstance(intent, UpdatePropertyStatus):
                prop = await self._get(Property, intent.property_id, "Property")
                prop.status = intent.status.value
                prop.updated_at = self.orchestrator.now()
            elif isinstance(intent, CreatePaymentIntent):
                await self._create_payment(intent)
            elif isinstance(intent, RefundDeposit):
                await self._refund_deposit(intent)
            elif isinstance(intent, SendNotification):
                self._call(
                    "notifier", intent.template, self.collaborators.notifier.send,
                    intent.recipient_id, intent.template, intent.context,
                )
            elif isinstance(intent, InitiateBackgroundCheck):
                reference = self._call(
                    "background check provider", "initiate", self.collaborators.background_checks.initiate,
                    intent.application_id, intent.applicant_id,
                )
                application = await self._get(RentalApplication, intent.application_id, "Application")
                application.background_check_reference = reference
            else:
                raise TypeError(f"unsupported intent {intent!r}")

    async def _create_payment(self, intent: CreatePaymentIntent) -> Payment:
        charge = self._call(
            "payment gateway",
            "create payment intent",
            self.collaborators.payments.create_payment_intent,
            intent.payment_type,
            intent.amount,
            intent.payer_id,
            intent.payee_id,
            {"application_id": intent.application_id, "lease_id": intent.lease_id},
        )
        breakdown = fees.fee_breakdown(intent.amount, charge.processing_fee)
        now = self.orchestrator.now()
        payment = Payment(
            id=_new_id("pay"),
            application_id=intent.application_id,
            lease_id=intent.lease_id,
            payer_id=intent.payer_id,
            payee_id=intent.payee_id,
            type=intent.payment_type.value,
            status=PaymentStatus.PENDING.value,
            amount=intent.amount.amount,
            currency=intent.amount.currency,
            platform_fee=breakdown.platform_fee.amount,
            processing_fee=breakdown.processing_fee.amount,
            landlord_net=breakdown.landlord_net.amount,
            gateway_reference=charge.reference,
            description=intent.description,
            created_at=now,
            updated_at=now,
        )
        self.session.add(payment)
        return payment

    async def _refund_deposit(self, intent: RefundDeposit) -> Payment:
        charge = self._call(
            "payment gateway",
            "refund deposit",
            self.collaborators.payments.refund,
            intent.amount,
            intent.payee_id,
            {"lease_id": intent.lease_id},
        )
        now = self.orchestrator.now()
        payment = Payment(
            id=_new_id("pay"),
            lease_id=intent.lease_id,
            payer_id=intent.payer_id,
            payee_id=intent.payee_id,
            type=PaymentType.DEPOSIT_REFUND.value,
            status=PaymentStatus.PENDING.value,
            amount=intent.amount.amount,
            currency=intent.amount.currency,
            platform_fee=0,
            processing_fee=charge.processing_fee.amount,
            landlord_net=0,
            gateway_reference=charge.reference,
            description="Security deposit refund",
            created_at=now,
            updated_at=now,
        )
        self.session.add(payment)
        return payment

    @staticmethod
    def _can_view(actor: Actor, *party_ids: str) -> None:
        if actor.role == ActorRole.ADMIN or actor.id in party_ids:
            return
        raise AuthorizationError("you are not a party to this record", actor_id=actor.id)

    #
    # --- properties ---
    #

    async def create_property(
        self, actor: Actor, title: str, address: Optional[str], rent: Money, is_rent_stabilized: bool = False
    ) -> Property:
        if actor.role not in LANDLORD_ROLES and actor.role != ActorRole.ADMIN:
            raise AuthorizationError("only landlords can list properties", actor_id=actor.id)
        if not rent.is_positive():
            raise ValidationFailed({"rentAmount": "must be greater than zero"})
        prop = Property(
            id=_new_id("prop"),
            owner_id=actor.id,
            title=title,
            address=address,
            rent_amount=rent.amount,
            currency=rent.currency,
            status=PropertyStatus.AVAILABLE.value,
            is_rent_stabilized=is_rent_stabilized,
            created_at=self.orchestrator.now(),
            updated_at=self.orchestrator.now(),
        )
        self.session.add(prop)
        await self.session.flush()
        return prop

    async def get_property(self, property_id: str) -> Property:
        return await self._get(Property, property_id, "Property")

    #
    # --- applications ---
    #

    async def submit_application(self, actor: Actor, property_id: str, draft: ApplicationDraft) -> RentalApplication:
        prop = await self._get(Property, property_id, "Property")
        existing = await self.session.execute(
            select(RentalApplication.id).where(
                RentalApplication.property_id == property_id,
                RentalApplication.applicant_id == actor.id,
            )
        )
        already_applied = existing.first() is not None
        outcome = self.orchestrator.submit_application(actor, prop, already_applied, draft)
        return await self._apply(outcome)

    async def get_application(self, actor: Actor, application_id: str) -> tuple[RentalApplication, Property]:
        application = await self._get(RentalApplication, application_id, "Application")
        prop = await self._get(Property, application.property_id, "Property")
        self._can_view(actor, application.applicant_id, prop.owner_id)
        return application, prop

    async def list_applications(
        self, actor: Actor, property_id: Optional[str] = None, status: Optional[ApplicationStatus] = None
    ) -> list[tuple[RentalApplication, Property]]:
        query = select(RentalApplication, Property).join(Property, Property.id == RentalApplication.property_id)
        if actor.role == ActorRole.RENTER:
            query = query.where(RentalApplication.applicant_id == actor.id)
        elif actor.role != ActorRole.ADMIN:
            query = query.where(Property.owner_id == actor.id)
        if property_id:
            query = query.where(RentalApplication.property_id == property_id)
        if status:
            query = query.where(RentalApplication.status == ApplicationStatus(status).value)
        result = await self.session.execute(query.order_by(RentalApplication.created_at.desc()))
        return [(a, p) for a, p in result.all()]

    async def update_application_status(
        self,
        actor: Actor,
        application_id: str,
        status: ApplicationStatus,
        notes: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> RentalApplication:
        application = await self._get(RentalApplication, application_id, "Application")
        prop = await self._get(Property, application.property_id, "Property")
        outcome = self.orchestrator.update_application_status(actor, application, prop, status, notes, expected_version)
        return await self._apply(outcome)

    async def withdraw_application(
        self, actor: Actor, application_id: str, expected_version: Optional[int] = None
    ) -> RentalApplication:
        application = await self._get(RentalApplication, application_id, "Application")
        prop = await self._get(Property, application.property_id, "Property")
        outcome = self.orchestrator.withdraw_application(actor, application, prop, expected_version)
        return await self._apply(outcome)

    async def initiate_background_check(self, actor: Actor, application_id: str) -> RentalApplication:
        application = await self._get(RentalApplication, application_id, "Application")
        prop = await self._get(Property, application.property_id, "Property")
        outcome = self.orchestrator.initiate_background_check(actor, application, prop)
        return await self._apply(outcome)

    async def record_background_check_result(self, reference: str, status: BackgroundCheckStatus) -> RentalApplication:
        result = await self.session.execute(
            select(RentalApplication).where(RentalApplication.background_check_reference == reference)
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFound("BackgroundCheck", reference)
        prop = await self._get(Property, application.property_id, "Property")
        outcome = self.orchestrator.record_background_check_result(application, prop, status, reference)
        return await self._apply(outcome)

    #
    # --- leases ---
    #

    async def create_lease(
        self,
        actor: Actor,
        application_id: str,
        start_date: date,
        end_date: date,
        monthly_rent: Money,
        security_deposit: Money,
        terms: Optional[dict[str, Any]] = None,
    ) -> Lease:
        application = await self._get(RentalApplication, application_id, "Application")
        prop = await self._get(Property, application.property_id, "Property")
        existing = await self.session.execute(select(Lease.id).where(Lease.application_id == application_id))
        lease_exists = existing.first() is not None
        outcome = self.orchestrator.create_lease(
            actor, application, prop, lease_exists, start_date, end_date, monthly_rent, security_deposit, terms
        )
        return await self._apply(outcome)

    async def get_lease(self, actor: Actor, lease_id: str) -> Lease:
        lease = await self._get(Lease, lease_id, "Lease")
        self._can_view(actor, lease.tenant_id, lease.landlord_id)
        return lease

    def _lease_scope(self, actor: Actor, query):
        if actor.role == ActorRole.RENTER:
            return query.where(Lease.tenant_id == actor.id)
        if actor.role != ActorRole.ADMIN:
            return query.where(Lease.landlord_id == actor.id)
        return query

    async def list_leases(
        self,
        actor: Actor,
        status: Optional[LeaseStatus] = None,
        property_id: Optional[str] = None,
        expiring_in: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Lease], int]:
        filters = []
        if status:
            filters.append(Lease.status == LeaseStatus(status).value)
        if property_id:
            filters.append(Lease.property_id == property_id)
        if expiring_in is not None:
            today = self.orchestrator.today()
            filters.append(Lease.status == LeaseStatus.ACTIVE.value)
            filters.append(Lease.end_date >= today)
            filters.append(Lease.end_date <= today + timedelta(days=expiring_in))

        count_query = self._lease_scope(actor, select(func.count()).select_from(Lease)).where(*filters)
        total = (await self.session.execute(count_query)).scalar_one()
        query = (
            self._lease_scope(actor, select(Lease))
            .where(*filters)
            .order_by(Lease.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        leases = (await self.session.execute(query)).scalars().all()
        return list(leases), total

    async def update_lease(
        self,
        actor: Actor,
        lease_id: str,
        status: Optional[LeaseStatus] = None,
        document_url: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Lease:
        lease = await self._get(Lease, lease_id, "Lease")
        prop = await self._get(Property, lease.property_id, "Property")
        outcome = self.orchestrator.update_lease(actor, lease, prop, status, document_url, expected_version)
        return await self._apply(outcome)

    async def terminate_lease(
        self,
        actor: Actor,
        lease_id: str,
        termination_date: date,
        reason: Optional[str] = None,
        refund_deposit: bool = False,
        expected_version: Optional[int] = None,
    ) -> Lease:
        lease = await self._get(Lease, lease_id, "Lease")
        prop = await self._get(Property, lease.property_id, "Property")
        outcome = self.orchestrator.terminate_lease(
            actor, lease, prop, termination_date, reason, refund_deposit, expected_version
        )
        return await self._apply(outcome)

    async def renew_lease(
        self,
        actor: Actor,
        lease_id: str,
        new_end_date: date,
        new_monthly_rent: Optional[Money] = None,
        renewal_terms: Optional[dict[str, Any]] = None,
        expected_version: Optional[int] = None,
    ) -> Lease:
        lease = await self._get(Lease, lease_id, "Lease")
        prop = await self._get(Property, lease.property_id, "Property")
        outcome = self.orchestrator.renew_lease(
            actor, lease, prop, new_end_date, new_monthly_rent, renewal_terms, expected_version
        )
        return await self._apply(outcome)

    async def renewal_candidates(self, actor: Actor, days_ahead: int) -> list[tuple[Lease, int]]:
        if actor.role not in LANDLORD_ROLES and actor.role != ActorRole.ADMIN:
            raise AuthorizationError("renewal candidates are only available to landlords", actor_id=actor.id)
        today = self.orchestrator.today()
        query = self._lease_scope(actor, select(Lease)).where(
            Lease.status == LeaseStatus.ACTIVE.value,
            Lease.superseded_by_id.is_(None),
            Lease.end_date >= today,
            Lease.end_date <= today + timedelta(days=days_ahead),
        )
        leases = (await self.session.execute(query.order_by(Lease.end_date.asc()))).scalars().all()
        return [(lease, fees.days_until_expiry(lease.end_date, today)) for lease in leases]

    async def lease_stats(self, actor: Actor) -> dict[str, int]:
        if actor.role not in LANDLORD_ROLES and actor.role != ActorRole.ADMIN:
            raise AuthorizationError("lease statistics are only available to landlords", actor_id=actor.id)
        today = self.orchestrator.today()
        month_start = datetime.combine(today.replace(day=1), time.min, tzinfo=timezone.utc)
        active = Lease.status == LeaseStatus.ACTIVE.value

        async def count(*conditions) -> int:
            query = self._lease_scope(actor, select(func.count()).select_from(Lease)).where(*conditions)
            return (await self.session.execute(query)).scalar_one()

        return {
            "total_leases": await count(),
            "active_leases": await count(active),
            "expiring_in_30_days": await count(active, Lease.end_date >= today, Lease.end_date <= today + timedelta(days=30)),
            "expiring_in_90_days": await count(active, Lease.end_date >= today, Lease.end_date <= today + timedelta(days=90)),
            "draft_leases": await count(Lease.status == LeaseStatus.DRAFT.value),
            "terminated_this_month": await count(
                Lease.status == LeaseStatus.TERMINATED.value, Lease.terminated_at >= month_start
            ),
        }

    async def lease_financials(self, actor: Actor, lease_id: str) -> dict[str, Any]:
        lease = await self.get_lease(actor, lease_id)
        today = self.orchestrator.today()
        days = fees.days_until_expiry(lease.end_date, today)
        return {
            "lease": lease,
            "total_lease_value": fees.total_lease_value(lease.rent, lease.start_date, lease.end_date),
            "days_until_expiry": days,
            "expiry_urgency": fees.classify_expiry(days),
            "security_deposit_compliant": fees.security_deposit_compliant(lease.deposit, lease.rent),
            "document_on_file": bool(lease.document_url),
        }

    async def rent_escalation(self, actor: Actor, lease_id: str, rate_percent: Decimal) -> tuple[Lease, fees.RentEscalation, bool]:
        lease = await self._get(Lease, lease_id, "Lease")
        prop = await self._get(Property, lease.property_id, "Property")
        self.orchestrator.require_landlord(actor, prop)
        return lease, fees.rent_escalation(lease.rent, rate_percent), bool(prop.is_rent_stabilized)

    async def expire_overdue_leases(self, actor: Actor) -> list[Lease]:
        """Periodic sweep: ACTIVE leases whose end date has passed become EXPIRED."""
        if actor.role != ActorRole.ADMIN:
            raise AuthorizationError("only administrators can run the expiry sweep", actor_id=actor.id)
        today = self.orchestrator.today()
        result = await self.session.execute(
            select(Lease).where(Lease.status == LeaseStatus.ACTIVE.value, Lease.end_date < today)
        )
        expired = []
        for lease in result.scalars().all():
            expired.append(await self._apply(self.orchestrator.expire_lease(lease)))
        logger.info("expiry sweep moved %d lease(s) to EXPIRED", len(expired))
        return expired

    #
    # --- payments ---
    #

    async def record_payment_event(self, gateway_reference: str, status: PaymentStatus) -> Payment:
        result = await self.session.execute(select(Payment).where(Payment.gateway_reference == gateway_reference))
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFound("Payment", gateway_reference)
        return await self._apply(self.orchestrator.record_payment_event(payment, status))

    async def payment_history(self, actor: Actor) -> list[Payment]:
        query = select(Payment)
        if actor.role != ActorRole.ADMIN:
            query = query.where(or_(Payment.payer_id == actor.id, Payment.payee_id == actor.id))
        result = await self.session.execute(query.order_by(Payment.created_at.desc()))
        return list(result.scalars().all())

    async def earnings(self, actor: Actor, currency: str) -> dict[str, Money]:
        if actor.role not in LANDLORD_ROLES and actor.role != ActorRole.ADMIN:
            raise AuthorizationError("earnings are only available to landlords", actor_id=actor.id)
        scope = [
            Payment.payee_id == actor.id,
            Payment.currency == currency,
            Payment.type != PaymentType.DEPOSIT_REFUND.value,
        ]
        completed = await self.session.execute(
            select(
                func.coalesce(func.sum(Payment.amount), 0),
                func.coalesce(func.sum(Payment.platform_fee), 0),
                func.coalesce(func.sum(Payment.processing_fee), 0),
                func.coalesce(func.sum(Payment.landlord_net), 0),
            ).where(*scope, Payment.status == PaymentStatus.COMPLETED.value)
        )
        gross, platform, processing, net = completed.one()
        pending = await self.session.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(*scope, Payment.status == PaymentStatus.PENDING.value)
        )
        return {
            "total_gross": Money(int(gross), currency),
            "total_platform_fees": Money(int(platform), currency),
            "total_processing_fees": Money(int(processing), currency),
            "total_net": Money(int(net), currency),
            "pending": Money(int(pending.scalar_one()), currency),
        }

    #
    # --- inspections / maintenance ---
    #

    async def schedule_inspection(
        self,
        actor: Actor,
        property_id: str,
        scheduled_for: datetime,
        inspector_id: Optional[str] = None,
        lease_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Inspection:
        prop = await self._get(Property, property_id, "Property")
        if lease_id:
            lease = await self._get(Lease, lease_id, "Lease")
            if lease.property_id != property_id:
                raise ValidationFailed({"leaseId": "lease belongs to a different property"})
        outcome = self.orchestrator.schedule_inspection(actor, prop, scheduled_for, inspector_id, lease_id, notes)
        return await self._apply(outcome)

    async def list_inspections(self, actor: Actor, property_id: str) -> list[Inspection]:
        prop = await self._get(Property, property_id, "Property")
        self.orchestrator.require_landlord(actor, prop)
        result = await self.session.execute(
            select(Inspection).where(Inspection.property_id == property_id).order_by(Inspection.scheduled_for.asc())
        )
        return list(result.scalars().all())

    async def update_inspection_status(
        self, actor: Actor, inspection_id: str, status: InspectionStatus, expected_version: Optional[int] = None
    ) -> Inspection:
        inspection = await self._get(Inspection, inspection_id, "Inspection")
        prop = await self._get(Property, inspection.property_id, "Property")
        outcome = self.orchestrator.update_inspection_status(actor, inspection, prop, status, expected_version)
        return await self._apply(outcome)

    async def open_maintenance_request(
        self,
        actor: Actor,
        property_id: str,
        title: str,
        description: Optional[str] = None,
        priority: MaintenancePriority = MaintenancePriority.MEDIUM,
    ) -> MaintenanceRequest:
        prop = await self._get(Property, property_id, "Property")
        active = await self.session.execute(
            select(Lease.id).where(
                Lease.property_id == property_id,
                Lease.tenant_id == actor.id,
                Lease.status == LeaseStatus.ACTIVE.value,
            )
        )
        has_active_lease = active.first() is not None
        outcome = self.orchestrator.open_maintenance_request(actor, prop, has_active_lease, title, description, priority)
        return await self._apply(outcome)

    async def list_maintenance_requests(self, actor: Actor, property_id: str) -> list[MaintenanceRequest]:
        prop = await self._get(Property, property_id, "Property")
        query = select(MaintenanceRequest).where(MaintenanceRequest.property_id == property_id)
        if actor.role == ActorRole.RENTER:
            query = query.where(MaintenanceRequest.tenant_id == actor.id)
        else:
            self.orchestrator.require_landlord(actor, prop)
        result = await self.session.execute(query.order_by(MaintenanceRequest.created_at.desc()))
        return list(result.scalars().all())

    async def update_maintenance_status(
        self, actor: Actor, request_id: str, status: MaintenanceStatus, expected_version: Optional[int] = None
    ) -> MaintenanceRequest:
        request = await self._get(MaintenanceRequest, request_id, "MaintenanceRequest")
        prop = await self._get(Property, request.property_id, "Property")
        outcome = self.orchestrator.update_maintenance_status(actor, request, prop, status, expected_version)
        return await self._apply(outcome)

    async def assign_vendor(
        self,
        actor: Actor,
        request_id: str,
        vendor_id: Optional[str],
        notes: Optional[str] = None,
        estimate: Optional[Money] = None,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequest:
        request = await self._get(MaintenanceRequest, request_id, "MaintenanceRequest")
        prop = await self._get(Property, request.property_id, "Property")
        vendor = await self._get(Vendor, vendor_id, "Vendor") if vendor_id else None
        outcome = self.orchestrator.assign_vendor(actor, request, prop, vendor, notes, estimate, expected_version)
        return await self._apply(outcome)
