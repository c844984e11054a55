"""
Vendor directory: each landlord keeps their own list of contractors, reviews them after
maintenance work, and assigns them to maintenance requests (see ``LeasingService.assign_vendor``).
"""
from __future__ import annotations

import logging
import re
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from models import MaintenanceRequest, Property, Vendor, VendorReview
from services.errors import AuthorizationError, ConcurrencyConflict, NotFound, ValidationFailed
from services.money import Money
from services.orchestrator import LANDLORD_ROLES, Actor, LifecycleOrchestrator

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PHONE_DIGITS = 10
RATE_FIELDS = ("hourly_rate", "emergency_rate", "minimum_charge")
PROFILE_FIELDS = (
    "company_name",
    "contact_person",
    "email",
    "phone",
    "address",
    "website",
    "description",
    "specialties",
    "service_areas",
    "business_license",
) + RATE_FIELDS


def average_rating(ratings: Sequence[int]) -> float:
    """Mean star rating rounded half up to one decimal; 0.0 with no reviews."""
    if not ratings:
        return 0.0
    mean = Decimal(sum(ratings)) / len(ratings)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def validate_vendor_profile(fields: dict[str, Any], currency: str, partial: bool = False) -> dict[str, str]:
    errors: dict[str, str] = {}
    for key, label in (("company_name", "companyName"), ("contact_person", "contactPerson")):
        if key in fields or not partial:
            if not (fields.get(key) or "").strip():
                errors[label] = "is required"
    if "email" in fields or not partial:
        if not EMAIL_RE.match(fields.get("email") or ""):
            errors["email"] = "must be a valid email address"
    if "phone" in fields or not partial:
        if sum(ch.isdigit() for ch in fields.get("phone") or "") < MIN_PHONE_DIGITS:
            errors["phone"] = f"must contain at least {MIN_PHONE_DIGITS} digits"
    website = fields.get("website")
    if website and not website.startswith(("http://", "https://")):
        errors["website"] = "must be an http(s) URL"
    for key in RATE_FIELDS:
        rate: Optional[Money] = fields.get(key)
        if rate is None:
            continue
        label = re.sub(r"_(\w)", lambda m: m.group(1).upper(), key)
        if not rate.is_positive():
            errors[label] = "must be greater than zero"
        elif rate.currency != currency:
            errors[label] = f"must be in {currency}"
    return errors


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class VendorService:
    def __init__(self, session: AsyncSession, orchestrator: Optional[LifecycleOrchestrator] = None) -> None:
        self.session = session
        self.orchestrator = orchestrator or LifecycleOrchestrator()

    @staticmethod
    def _require_manager(actor: Actor) -> None:
        if actor.role not in LANDLORD_ROLES and not actor.is_admin:
            raise AuthorizationError("only landlords can manage vendors", actor_id=actor.id)

    async def _owned(self, actor: Actor, vendor_id: str) -> Vendor:
        self._require_manager(actor)
        vendor = await self.session.get(Vendor, vendor_id)
        if vendor is None:
            raise NotFound("Vendor", vendor_id)
        if vendor.added_by_id != actor.id and not actor.is_admin:
            raise AuthorizationError("vendor belongs to another landlord", actor_id=actor.id, vendor_id=vendor_id)
        return vendor

    @staticmethod
    def _assign_profile(vendor: Vendor, fields: dict[str, Any]) -> None:
        for key, value in fields.items():
            if key in RATE_FIELDS:
                value = value.amount if value is not None else None
            elif key in ("specialties", "service_areas"):
                value = [s.strip() for s in value or [] if s and s.strip()]
            elif isinstance(value, str) and key in ("company_name", "contact_person", "email", "phone"):
                value = value.strip()
            setattr(vendor, key, value)

    async def create_vendor(self, actor: Actor, fields: dict[str, Any], currency: str) -> Vendor:
        self._require_manager(actor)
        profile = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        currency = currency.upper()
        errors = validate_vendor_profile(profile, currency)
        if errors:
            raise ValidationFailed(errors)
        now = self.orchestrator.now()
        vendor = Vendor(
            id=_new_id("vnd"),
            added_by_id=actor.id,
            currency=currency,
            is_active=True,
            rating=0.0,
            total_reviews=0,
            specialties=[],
            service_areas=[],
            created_at=now,
            updated_at=now,
        )
        self._assign_profile(vendor, profile)
        self.session.add(vendor)
        await self.session.flush()
        logger.info("vendor %s added by %s", vendor.id, actor.id)
        return vendor

    async def get_vendor(self, actor: Actor, vendor_id: str) -> Vendor:
        return await self._owned(actor, vendor_id)

    async def list_vendors(
        self,
        actor: Actor,
        search: Optional[str] = None,
        specialty: Optional[str] = None,
        min_rating: Optional[float] = None,
        include_inactive: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Vendor], int]:
        self._require_manager(actor)
        query = select(Vendor)
        if not actor.is_admin:
            query = query.where(Vendor.added_by_id == actor.id)
        if not include_inactive:
            query = query.where(Vendor.is_active.is_(True))
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(func.lower(Vendor.company_name).like(pattern), func.lower(Vendor.contact_person).like(pattern))
            )
        if min_rating is not None:
            query = query.where(Vendor.rating >= min_rating)
        query = query.order_by(Vendor.rating.desc(), Vendor.total_reviews.desc(), Vendor.created_at.desc())
        vendors = list((await self.session.execute(query)).scalars().all())
        # specialties is a JSON list, matched here rather than in SQL
        if specialty:
            wanted = specialty.lower()
            vendors = [v for v in vendors if wanted in (s.lower() for s in v.specialties or [])]
        start = (page - 1) * limit
        return vendors[start : start + limit], len(vendors)

    async def update_vendor(
        self, actor: Actor, vendor_id: str, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> Vendor:
        vendor = await self._owned(actor, vendor_id)
        self.orchestrator.check_version("Vendor", vendor, expected_version)
        changes = {k: v for k, v in changes.items() if k in PROFILE_FIELDS}
        if not changes:
            raise ValidationFailed({"body": "no vendor fields to update"})
        errors = validate_vendor_profile(changes, vendor.currency, partial=True)
        if errors:
            raise ValidationFailed(errors)
        self._assign_profile(vendor, changes)
        vendor.updated_at = self.orchestrator.now()
        await self._flush(vendor)
        return vendor

    async def deactivate_vendor(self, actor: Actor, vendor_id: str) -> Vendor:
        vendor = await self._owned(actor, vendor_id)
        if vendor.is_active:
            vendor.is_active = False
            vendor.updated_at = self.orchestrator.now()
            await self._flush(vendor)
            logger.info("vendor %s deactivated by %s", vendor.id, actor.id)
        return vendor

    async def add_review(
        self,
        actor: Actor,
        vendor_id: str,
        rating: int,
        comment: Optional[str] = None,
        maintenance_request_id: Optional[str] = None,
    ) -> tuple[VendorReview, Vendor]:
        """Only a landlord whose property had a request assigned to the vendor may review them."""
        vendor = await self.session.get(Vendor, vendor_id)
        if vendor is None:
            raise NotFound("Vendor", vendor_id)
        if not 1 <= rating <= 5:
            raise ValidationFailed({"rating": "must be between 1 and 5"})
        worked = await self.session.execute(
            select(MaintenanceRequest.id)
            .join(Property, Property.id == MaintenanceRequest.property_id)
            .where(MaintenanceRequest.assigned_vendor_id == vendor_id, Property.owner_id == actor.id)
        )
        request_ids = set(worked.scalars().all())
        if not request_ids:
            raise AuthorizationError("you can only review vendors you have worked with", actor_id=actor.id)
        if maintenance_request_id and maintenance_request_id not in request_ids:
            raise ValidationFailed({"maintenanceRequestId": "was not assigned to this vendor on your property"})

        review = VendorReview(
            id=_new_id("rev"),
            vendor_id=vendor_id,
            reviewer_id=actor.id,
            maintenance_request_id=maintenance_request_id,
            rating=rating,
            comment=comment,
            created_at=self.orchestrator.now(),
        )
        self.session.add(review)
        await self.session.flush()

        ratings = (await self.session.execute(select(VendorReview.rating).where(VendorReview.vendor_id == vendor_id))).scalars().all()
        vendor.rating = average_rating(ratings)
        vendor.total_reviews = len(ratings)
        vendor.updated_at = self.orchestrator.now()
        await self._flush(vendor)
        return review, vendor

    async def _flush(self, vendor: Vendor) -> None:
        try:
            await self.session.flush()
        except StaleDataError as e:
            raise ConcurrencyConflict("Vendor", vendor.id) from e
