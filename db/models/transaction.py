from __future__ import annotations

import enum
import uuid

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.utils import PortableJSON, PortableUUID, utcnow


class TxType(enum.Enum):
    SWAP = "swap"
    TRANSFER = "transfer"
    BRIDGE = "bridge"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(PortableUUID, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(PortableUUID, ForeignKey("users.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    # "metadata" is reserved on declarative classes
    tx_metadata: Mapped[dict] = mapped_column("metadata", PortableJSON, nullable=False, default=dict)

    created_at = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
