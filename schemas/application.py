from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from models.enums import ApplicationStatus
from schemas.common import MoneyInput, to_money
from services.orchestrator import ApplicationDraft


class EmploymentInfoSchema(BaseModel):
    employer: Optional[str] = None
    position: Optional[str] = None
    years_employed: Optional[float] = Field(None, alias="yearsEmployed")
    supervisor_name: Optional[str] = Field(None, alias="supervisorName")
    supervisor_phone: Optional[str] = Field(None, alias="supervisorPhone")
    work_address: Optional[str] = Field(None, alias="workAddress")

    model_config = {"populate_by_name": True}


class ReferenceSchema(BaseModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    model_config = {"populate_by_name": True}


class DocumentsSchema(BaseModel):
    id_document: Optional[str] = Field(None, alias="idDocument")
    pay_stubs: list[str] = Field(default_factory=list, alias="payStubs")
    bank_statements: list[str] = Field(default_factory=list, alias="bankStatements")
    employment_letter: Optional[str] = Field(None, alias="employmentLetter")
    previous_lease: Optional[str] = Field(None, alias="previousLease")

    model_config = {"populate_by_name": True}


class ApplicationCreate(BaseModel):
    """Amounts are minor units (cents), bare or as ``{amount, currency}``."""

    property_id: str = Field(..., alias="propertyId")
    move_in_date: Optional[date] = Field(None, alias="moveInDate")
    monthly_income: Optional[MoneyInput] = Field(None, alias="monthlyIncome")
    currency: Optional[str] = None
    employment_info: EmploymentInfoSchema = Field(default_factory=EmploymentInfoSchema, alias="employmentInfo")
    references: list[ReferenceSchema] = Field(default_factory=list)
    documents: DocumentsSchema = Field(default_factory=DocumentsSchema)
    credit_check_consent: bool = Field(False, alias="creditCheckConsent")
    background_check_consent: bool = Field(False, alias="backgroundCheckConsent")
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}

    def to_draft(self, default_currency: str) -> ApplicationDraft:
        return ApplicationDraft(
            move_in_date=self.move_in_date,
            monthly_income=to_money(self.monthly_income, self.currency or default_currency),
            employment_info=self.employment_info.model_dump(by_alias=False, exclude_none=True),
            references=[r.model_dump(by_alias=False, exclude_none=True) for r in self.references],
            documents=self.documents.model_dump(by_alias=False, exclude_none=True),
            credit_check_consent=self.credit_check_consent,
            background_check_consent=self.background_check_consent,
            notes=self.notes,
        )


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}


class ApplicationWithdraw(BaseModel):
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}
