from __future__ import annotations

import uuid

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.utils import PortableJSON, PortableUUID, utcnow


class Message(Base):
    __tablename__ = "messages"

    # autoincrement keeps insertion order for history reads
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[uuid.UUID] = mapped_column(PortableUUID, ForeignKey("chats.id"), nullable=False, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(PortableUUID, ForeignKey("users.id"), nullable=False)
    content: Mapped[list] = mapped_column(PortableJSON, nullable=False, default=list)

    created_at = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
