from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from database import Base
from models.enums import PaymentStatus
from services.money import Money


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(String(64), ForeignKey("applications.id", ondelete="SET NULL"), nullable=True, index=True)
    lease_id = Column(String(64), ForeignKey("leases.id", ondelete="SET NULL"), nullable=True, index=True)
    payer_id = Column(String(64), nullable=False, index=True)
    payee_id = Column(String(64), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    status = Column(String(32), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    platform_fee = Column(Integer, nullable=False, default=0)
    processing_fee = Column(Integer, nullable=False, default=0)
    landlord_net = Column(Integer, nullable=False, default=0)
    gateway_reference = Column(String(128), nullable=True, unique=True, index=True)
    description = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def total(self) -> Money:
        return Money(self.amount, self.currency or "USD")
