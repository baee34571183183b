"""Fee configuration schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class FeeConfigurationCreate(BaseModel):
    """Admin request to set a cohort's fee."""

    cohort_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    currency: str = Field("NGN", min_length=3, max_length=3)
    description: str | None = Field(None, max_length=500)
    is_active: bool = True


class FeeConfigurationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cohort_id: int
    amount: Decimal
    currency: str
    description: str | None = None
    is_active: bool
    created_at: datetime
