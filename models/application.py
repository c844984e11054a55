from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy import JSON

from database import Base
from models.enums import ApplicationStatus
from services.money import Money


class RentalApplication(Base):
    __tablename__ = "applications"

    id = Column(String(64), primary_key=True, index=True)
    property_id = Column(String(64), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    applicant_id = Column(String(64), nullable=False, index=True)
    status = Column(String(32), nullable=False, default=ApplicationStatus.PENDING.value, index=True)
    move_in_date = Column(Date, nullable=False)
    monthly_income = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    # Normalized payloads (snake_case keys)
    employment_info = Column(JSON, nullable=False)
    references = Column(JSON, nullable=False, default=list)
    documents = Column(JSON, nullable=False, default=dict)
    credit_check_consent = Column(Boolean, nullable=False, default=False)
    background_check_consent = Column(Boolean, nullable=False, default=False)
    background_check_status = Column(String(32), nullable=True)
    background_check_reference = Column(String(128), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    landlord_notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def income(self) -> Money:
        return Money(self.monthly_income, self.currency or "USD")
