from typing import Optional

from pydantic import BaseModel, Field

from schemas.common import MoneyInput


class VendorCreate(BaseModel):
    """Rates are minor units (cents), bare or as ``{amount, currency}``."""

    company_name: str = Field(..., alias="companyName")
    contact_person: str = Field(..., alias="contactPerson")
    email: str
    phone: str
    address: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    specialties: list[str] = Field(default_factory=list)
    service_areas: list[str] = Field(default_factory=list, alias="serviceAreas")
    business_license: Optional[str] = Field(None, alias="businessLicense")
    hourly_rate: Optional[MoneyInput] = Field(None, alias="hourlyRate")
    emergency_rate: Optional[MoneyInput] = Field(None, alias="emergencyRate")
    minimum_charge: Optional[MoneyInput] = Field(None, alias="minimumCharge")
    currency: Optional[str] = None

    model_config = {"populate_by_name": True}


class VendorUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    company_name: Optional[str] = Field(None, alias="companyName")
    contact_person: Optional[str] = Field(None, alias="contactPerson")
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    specialties: Optional[list[str]] = None
    service_areas: Optional[list[str]] = Field(None, alias="serviceAreas")
    business_license: Optional[str] = Field(None, alias="businessLicense")
    hourly_rate: Optional[MoneyInput] = Field(None, alias="hourlyRate")
    emergency_rate: Optional[MoneyInput] = Field(None, alias="emergencyRate")
    minimum_charge: Optional[MoneyInput] = Field(None, alias="minimumCharge")
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}


class VendorReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    maintenance_request_id: Optional[str] = Field(None, alias="maintenanceRequestId")

    model_config = {"populate_by_name": True}


class VendorAssign(BaseModel):
    """``vendorId`` null unassigns the current vendor."""

    vendor_id: Optional[str] = Field(None, alias="vendorId")
    vendor_notes: Optional[str] = Field(None, alias="vendorNotes")
    vendor_estimate: Optional[MoneyInput] = Field(None, alias="vendorEstimate")
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}
