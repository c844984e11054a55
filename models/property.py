from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from database import Base
from models.enums import PropertyStatus
from services.money import Money


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(64), primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    title = Column(String(256), nullable=False)
    address = Column(Text, nullable=True)
    rent_amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(32), nullable=False, default=PropertyStatus.AVAILABLE.value, index=True)
    is_rent_stabilized = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def rent(self) -> Money:
        return Money(self.rent_amount, self.currency or "USD")
