"""Normalized feed record model"""

from pydantic import BaseModel, ConfigDict

CURRENCY = "JPY"


class TransactionRecord(BaseModel):
    """Transaction extracted from one feed entry."""

    model_config = ConfigDict(frozen=True)

    date: str
    amount: int
    currency: str = CURRENCY
    name: str
    category: str = ""
    is_transfer: bool = False
