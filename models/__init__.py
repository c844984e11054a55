from models.activity_log import ActivityLog
from models.application import RentalApplication
from models.inspection import Inspection, MaintenanceRequest
from models.lease import Lease
from models.payment import Payment
from models.property import Property
from models.vendor import Vendor, VendorReview

__all__ = [
    "ActivityLog",
    "Inspection",
    "Lease",
    "MaintenanceRequest",
    "Payment",
    "Property",
    "RentalApplication",
    "Vendor",
    "VendorReview",
]
