import uuid
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, ForeignKey, Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from settleup.core.database import Base


class SettlementMethod(str, enum.Enum):
    cash = "CASH"
    online = "ONLINE"


class SettlementStatus(str, enum.Enum):
    pending = "PENDING"
    pending_online = "PENDING_ONLINE"
    completed = "COMPLETED"


class Settlement(Base):
    __tablename__ = "settlements"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("groups.id"), index=True, nullable=False)
    from_user: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)
    to_user: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[SettlementMethod] = mapped_column(SAEnum(SettlementMethod), nullable=False, default=SettlementMethod.cash)
    note: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[SettlementStatus] = mapped_column(
        SAEnum(SettlementStatus), nullable=False, default=SettlementStatus.completed
    )
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    debtor: Mapped["User"] = relationship(foreign_keys=[from_user], lazy="selectin")
    creditor: Mapped["User"] = relationship(foreign_keys=[to_user], lazy="selectin")

    @property
    def from_user_name(self) -> str | None:
        return self.debtor.display_name if self.debtor else None

    @property
    def to_user_name(self) -> str | None:
        return self.creditor.display_name if self.creditor else None
