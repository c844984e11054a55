from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from database import Base
from models.enums import InspectionStatus, MaintenancePriority, MaintenanceStatus
from services.money import Money


class Inspection(Base):
    __tablename__ = "inspections"

    id = Column(String(64), primary_key=True, index=True)
    property_id = Column(String(64), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    lease_id = Column(String(64), ForeignKey("leases.id", ondelete="SET NULL"), nullable=True)
    inspector_id = Column(String(64), nullable=True)
    scheduled_for = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(32), nullable=False, default=InspectionStatus.SCHEDULED.value, index=True)
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}


class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"

    id = Column(String(64), primary_key=True, index=True)
    property_id = Column(String(64), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(16), nullable=False, default=MaintenancePriority.MEDIUM.value)
    status = Column(String(32), nullable=False, default=MaintenanceStatus.OPEN.value, index=True)
    assigned_vendor_id = Column(String(64), ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, index=True)
    vendor_notes = Column(Text, nullable=True)
    # Minor units of vendor_estimate_currency
    vendor_estimate = Column(Integer, nullable=True)
    vendor_estimate_currency = Column(String(3), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def estimate(self):
        if self.vendor_estimate is None:
            return None
        return Money(self.vendor_estimate, self.vendor_estimate_currency or "USD")
