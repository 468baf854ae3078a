from __future__ import annotations

import enum
import uuid

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.utils import PortableUUID, utcnow


class ChatType(enum.Enum):
    TRANSACTION = "TRANSACTION"


class Chat(Base):
    __tablename__ = "chats"

    id: Mapped[uuid.UUID] = mapped_column(PortableUUID, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(PortableUUID, ForeignKey("users.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String, nullable=False, default=ChatType.TRANSACTION.value)

    created_at = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
