from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.enums import InspectionStatus, MaintenancePriority, MaintenanceStatus


class InspectionCreate(BaseModel):
    property_id: str = Field(..., alias="propertyId")
    scheduled_for: datetime = Field(..., alias="scheduledFor")
    inspector_id: Optional[str] = Field(None, alias="inspectorId")
    lease_id: Optional[str] = Field(None, alias="leaseId")
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}


class InspectionStatusUpdate(BaseModel):
    status: InspectionStatus
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}


class MaintenanceCreate(BaseModel):
    property_id: str = Field(..., alias="propertyId")
    title: str
    description: Optional[str] = None
    priority: MaintenancePriority = MaintenancePriority.MEDIUM

    model_config = {"populate_by_name": True}


class MaintenanceStatusUpdate(BaseModel):
    status: MaintenanceStatus
    expected_version: Optional[int] = Field(None, alias="expectedVersion")

    model_config = {"populate_by_name": True}
