"""
Fee and financial calculations for payments and leases.
Pure functions over ``Money``; policy constants default to the values in ``config.settings``.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from config import settings
from models.enums import ExpiryUrgency, IncomeRatioClass
from services.errors import ValidationFailed
from services.money import Money, round_half_up

DAYS_PER_BILLING_MONTH = 30


@dataclass(frozen=True)
class FeeBreakdown:
    total: Money
    platform_fee: Money
    processing_fee: Money
    landlord_net: Money


@dataclass(frozen=True)
class IncomeRatioThresholds:
    healthy: float
    borderline: float

    @classmethod
    def from_settings(cls) -> "IncomeRatioThresholds":
        return cls(healthy=settings.income_ratio_healthy, borderline=settings.income_ratio_borderline)


@dataclass(frozen=True)
class ExpiryThresholds:
    urgent_days: int
    warning_days: int

    @classmethod
    def from_settings(cls) -> "ExpiryThresholds":
        return cls(urgent_days=settings.expiry_urgent_days, warning_days=settings.expiry_warning_days)


@dataclass(frozen=True)
class RentEscalation:
    current_rent: Money
    rate_percent: Decimal
    escalation_amount: Money
    new_rent: Money


def platform_fee(amount: Money, rate: Optional[Decimal] = None) -> Money:
    """Marketplace cut of a payment: ``round(amount * rate)``, half up."""
    rate = settings.platform_fee_rate if rate is None else rate
    if amount.amount < 0:
        raise ValidationFailed({"amount": "must not be negative"})
    return amount.scale(rate)


def estimate_processing_fee(amount: Money) -> Money:
    """Gateway-style card fee estimate (percentage plus fixed). Used only by the sandbox gateway."""
    variable = amount.scale(settings.processing_fee_rate)
    return variable + Money(settings.processing_fee_fixed, amount.currency)


def landlord_net(amount: Money, processing_fee: Money, rate: Optional[Decimal] = None) -> Money:
    return amount - platform_fee(amount, rate) - processing_fee


def fee_breakdown(amount: Money, processing_fee: Money, rate: Optional[Decimal] = None) -> FeeBreakdown:
    fee = platform_fee(amount, rate)
    return FeeBreakdown(
        total=amount,
        platform_fee=fee,
        processing_fee=processing_fee,
        landlord_net=amount - fee - processing_fee,
    )


def income_to_rent_ratio(monthly_income: Money, rent: Money, annualize: bool = False) -> float:
    """
    Income divided by monthly rent. With ``annualize`` the income is multiplied by 12 first,
    which matches the common "annual income of 40x monthly rent" screening rule.
    """
    if monthly_income.currency != rent.currency:
        raise ValidationFailed({"currency": f"income in {monthly_income.currency}, rent in {rent.currency}"})
    if rent.amount <= 0:
        raise ValidationFailed({"rent": "must be greater than zero"})
    income = monthly_income.amount * 12 if annualize else monthly_income.amount
    return income / rent.amount


def classify_income_ratio(ratio: float, thresholds: Optional[IncomeRatioThresholds] = None) -> IncomeRatioClass:
    thresholds = thresholds or IncomeRatioThresholds.from_settings()
    if ratio >= thresholds.healthy:
        return IncomeRatioClass.HEALTHY
    if ratio >= thresholds.borderline:
        return IncomeRatioClass.BORDERLINE
    return IncomeRatioClass.RISK


def total_lease_value(monthly_rent: Money, start_date: date, end_date: date) -> Money:
    """Rent over the lease term using a flat 30-day month: ``rent * days / 30``."""
    days = (end_date - start_date).days
    return monthly_rent.scale(Decimal(days) / DAYS_PER_BILLING_MONTH)


def days_until_expiry(end_date: date, today: date) -> int:
    return (end_date - today).days


def classify_expiry(days: int, thresholds: Optional[ExpiryThresholds] = None) -> ExpiryUrgency:
    thresholds = thresholds or ExpiryThresholds.from_settings()
    if days < 0:
        return ExpiryUrgency.EXPIRED
    if days <= thresholds.urgent_days:
        return ExpiryUrgency.URGENT
    if days <= thresholds.warning_days:
        return ExpiryUrgency.WARNING
    return ExpiryUrgency.HEALTHY


def rent_escalation(monthly_rent: Money, rate_percent: Decimal, max_percent: Optional[Decimal] = None) -> RentEscalation:
    max_percent = settings.max_escalation_percent if max_percent is None else max_percent
    rate_percent = Decimal(str(rate_percent))
    if rate_percent <= 0 or rate_percent > max_percent:
        raise ValidationFailed({"escalationRate": f"must be greater than 0 and at most {max_percent}%"})
    increase = Money(round_half_up(Decimal(monthly_rent.amount) * rate_percent / 100), monthly_rent.currency)
    return RentEscalation(
        current_rent=monthly_rent,
        rate_percent=rate_percent,
        escalation_amount=increase,
        new_rent=monthly_rent + increase,
    )


def security_deposit_compliant(security_deposit: Money, monthly_rent: Money) -> bool:
    """Deposit may not exceed one month's rent."""
    return security_deposit <= monthly_rent
