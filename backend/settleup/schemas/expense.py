import uuid
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from settleup.models.expense import SplitType


class SplitInput(BaseModel):
    user_id: uuid.UUID
    amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    percentage: Decimal | None = Field(default=None, ge=0, le=100)


class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    # Parsed by the split calculator so unknown policies surface as InvalidSplitType.
    split_type: str
    splits: list[SplitInput] = Field(min_length=1)


class SplitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    user_id: uuid.UUID
    display_name: str | None = None
    amount: Decimal


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    group_id: uuid.UUID
    description: str
    amount: Decimal
    split_type: SplitType
    paid_by: uuid.UUID
    payer_name: str | None = None
    created_at: datetime
    splits: list[SplitResponse] = []


class ExpenseDeleteResponse(BaseModel):
    message: str
    group_id: uuid.UUID
