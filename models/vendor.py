from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func

from database import Base
from services.money import Money


class Vendor(Base):
    """A contractor in a landlord's rolodex; linked to properties through maintenance assignments."""

    __tablename__ = "vendors"

    id = Column(String(64), primary_key=True, index=True)
    added_by_id = Column(String(64), nullable=False, index=True)
    company_name = Column(String(256), nullable=False)
    contact_person = Column(String(256), nullable=False)
    email = Column(String(256), nullable=False)
    phone = Column(String(64), nullable=False)
    address = Column(Text, nullable=True)
    website = Column(String(512), nullable=True)
    description = Column(Text, nullable=True)
    specialties = Column(JSON, nullable=False, default=list)
    service_areas = Column(JSON, nullable=False, default=list)
    business_license = Column(String(128), nullable=True)
    # Rates in minor units of ``currency``
    hourly_rate = Column(Integer, nullable=True)
    emergency_rate = Column(Integer, nullable=True)
    minimum_charge = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, nullable=False, default=True)
    rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def rate(self, name: str):
        value = getattr(self, name)
        return None if value is None else Money(value, self.currency or "USD")


class VendorReview(Base):
    __tablename__ = "vendor_reviews"

    id = Column(String(64), primary_key=True, index=True)
    vendor_id = Column(String(64), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(String(64), nullable=False, index=True)
    maintenance_request_id = Column(
        String(64), ForeignKey("maintenance_requests.id", ondelete="SET NULL"), nullable=True
    )
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
