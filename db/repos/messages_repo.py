from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.message import Message


def store_message(
    db: Session,
    *,
    chat_id: uuid.UUID,
    user_id: uuid.UUID,
    content: list[dict[str, Any]],
) -> Message:
    message = Message(chat_id=chat_id, user_id=user_id, content=content)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def list_messages_for_chat(db: Session, *, chat_id: uuid.UUID) -> list[Message]:
    stmt = select(Message).where(Message.chat_id == chat_id).order_by(Message.id.asc())
    return list(db.execute(stmt).scalars().all())
