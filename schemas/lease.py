from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field

from models.enums import LeaseStatus
from schemas.common import MoneyInput


class LeaseCreate(BaseModel):
    """Amounts are minor units (cents), bare or as ``{amount, currency}``."""

    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    monthly_rent: MoneyInput = Field(..., alias="monthlyRent")
    security_deposit: MoneyInput = Field(0, alias="securityDeposit")
    currency: Optional[str] = None
    terms: dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class LeaseUpdate(BaseModel):
    status: Optional[LeaseStatus] = None
    document_url: Optional[str] = Field(None, alias="documentUrl")
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}


class LeaseTerminate(BaseModel):
    termination_date: date = Field(..., alias="terminationDate")
    reason: Optional[str] = None
    refund_deposit: bool = Field(False, alias="refundDeposit")
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}


class LeaseRenew(BaseModel):
    new_end_date: date = Field(..., alias="newEndDate")
    new_monthly_rent: Optional[MoneyInput] = Field(None, alias="newMonthlyRent")
    renewal_terms: Optional[dict[str, Any]] = Field(None, alias="renewalTerms")
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}


class RentEscalationRequest(BaseModel):
    escalation_rate: Decimal = Field(..., alias="escalationRate")

    model_config = {"populate_by_name": True}
