from enum import Enum


class ActorRole(str, Enum):
    RENTER = "RENTER"
    LANDLORD = "LANDLORD"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    ADMIN = "ADMIN"


class PropertyStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    PENDING = "PENDING"
    RENTED = "RENTED"
    UNAVAILABLE = "UNAVAILABLE"


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class BackgroundCheckStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class LeaseStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_SIGNATURE = "PENDING_SIGNATURE"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"


class PaymentType(str, Enum):
    APPLICATION_FEE = "APPLICATION_FEE"
    BACKGROUND_CHECK_FEE = "BACKGROUND_CHECK_FEE"
    SECURITY_DEPOSIT = "SECURITY_DEPOSIT"
    FIRST_MONTH_RENT = "FIRST_MONTH_RENT"
    MONTHLY_RENT = "MONTHLY_RENT"
    DEPOSIT_REFUND = "DEPOSIT_REFUND"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class InspectionStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MaintenanceStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MaintenancePriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EMERGENCY = "EMERGENCY"


class IncomeRatioClass(str, Enum):
    HEALTHY = "healthy"
    BORDERLINE = "borderline"
    RISK = "risk"


class ExpiryUrgency(str, Enum):
    EXPIRED = "EXPIRED"
    URGENT = "URGENT"
    WARNING = "WARNING"
    HEALTHY = "HEALTHY"
