from __future__ import annotations

import uuid

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.utils import PortableUUID, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(PortableUUID, primary_key=True, default=uuid.uuid4)
    address: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)

    created_at = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
