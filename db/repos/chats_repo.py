from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.chat import Chat, ChatType


def create_chat(db: Session, *, user_id: uuid.UUID, chat_type: ChatType = ChatType.TRANSACTION) -> Chat:
    chat = Chat(user_id=user_id, type=chat_type.value)
    db.add(chat)
    db.commit()
    db.refresh(chat)
    return chat


def get_chat(db: Session, chat_id: uuid.UUID) -> Chat | None:
    return db.execute(select(Chat).where(Chat.id == chat_id)).scalar_one_or_none()
