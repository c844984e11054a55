from typing import Optional

from pydantic import BaseModel, Field

from schemas.common import MoneyInput


class PropertyCreate(BaseModel):
    title: str
    address: Optional[str] = None
    rent_amount: MoneyInput = Field(..., alias="rentAmount")
    currency: Optional[str] = None
    is_rent_stabilized: bool = Field(False, alias="isRentStabilized")

    model_config = {"populate_by_name": True}
