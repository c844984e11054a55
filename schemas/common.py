from typing import Optional, Union

from pydantic import BaseModel

from services.money import Money


class MoneySchema(BaseModel):
    """``{"amount": 250000, "currency": "USD"}``; amount in minor units."""

    amount: int
    currency: Optional[str] = None


# A bare integer is minor units in the request's default currency
MoneyInput = Union[int, MoneySchema]


def to_money(value: Optional[MoneyInput], default_currency: str) -> Optional[Money]:
    if value is None:
        return None
    if isinstance(value, MoneySchema):
        return Money(value.amount, value.currency or default_currency)
    return Money(value, default_currency)
