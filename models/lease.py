from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy import JSON

from database import Base
from models.enums import LeaseStatus
from services.money import Money


class Lease(Base):
    __tablename__ = "leases"

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(String(64), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(String(64), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    landlord_id = Column(String(64), nullable=False, index=True)
    status = Column(String(32), nullable=False, default=LeaseStatus.DRAFT.value, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False, index=True)
    monthly_rent = Column(Integer, nullable=False)
    security_deposit = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    signed_at = Column(DateTime(timezone=True), nullable=True)
    terminated_at = Column(DateTime(timezone=True), nullable=True)
    document_url = Column(Text, nullable=True)
    # Free-form terms; termination and renewal bookkeeping is recorded here too
    terms = Column(JSON, nullable=False, default=dict)
    # Renewal links (relation only; both leases stay queryable)
    supersedes_id = Column(
        String(64), ForeignKey("leases.id", deferrable=True, initially="DEFERRED"), nullable=True, index=True
    )
    superseded_by_id = Column(
        String(64), ForeignKey("leases.id", deferrable=True, initially="DEFERRED"), nullable=True, index=True
    )
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def rent(self) -> Money:
        return Money(self.monthly_rent, self.currency or "USD")

    @property
    def deposit(self) -> Money:
        return Money(self.security_deposit, self.currency or "USD")
