from schemas.application import (
    ApplicationCreate,
    ApplicationStatusUpdate,
    ApplicationWithdraw,
    DocumentsSchema,
    EmploymentInfoSchema,
    ReferenceSchema,
)
from schemas.common import MoneySchema, to_money
from schemas.inspection import (
    InspectionCreate,
    InspectionStatusUpdate,
    MaintenanceCreate,
    MaintenanceStatusUpdate,
)
from schemas.lease import LeaseCreate, LeaseRenew, LeaseTerminate, LeaseUpdate, RentEscalationRequest
from schemas.payment import BackgroundCheckWebhookEvent, FeePreviewRequest, PaymentWebhookEvent
from schemas.property import PropertyCreate
from schemas.vendor import VendorAssign, VendorCreate, VendorReviewCreate, VendorUpdate

__all__ = [
    "ApplicationCreate",
    "ApplicationStatusUpdate",
    "ApplicationWithdraw",
    "DocumentsSchema",
    "EmploymentInfoSchema",
    "ReferenceSchema",
    "MoneySchema",
    "to_money",
    "InspectionCreate",
    "InspectionStatusUpdate",
    "MaintenanceCreate",
    "MaintenanceStatusUpdate",
    "LeaseCreate",
    "LeaseRenew",
    "LeaseTerminate",
    "LeaseUpdate",
    "RentEscalationRequest",
    "BackgroundCheckWebhookEvent",
    "FeePreviewRequest",
    "PaymentWebhookEvent",
    "PropertyCreate",
    "VendorAssign",
    "VendorCreate",
    "VendorReviewCreate",
    "VendorUpdate",
]
