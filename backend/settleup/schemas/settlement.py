import uuid
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from settleup.models.settlement import SettlementMethod, SettlementStatus


class SettlementCreate(BaseModel):
    from_user: uuid.UUID
    to_user: uuid.UUID
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    method: SettlementMethod = SettlementMethod.cash
    note: str | None = None


class SettlementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    group_id: uuid.UUID
    from_user: uuid.UUID
    from_user_name: str | None = None
    to_user: uuid.UUID
    to_user_name: str | None = None
    amount: Decimal
    method: SettlementMethod
    note: str | None = None
    status: SettlementStatus
    settled_at: datetime | None = None
    created_at: datetime
