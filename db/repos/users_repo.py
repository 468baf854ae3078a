from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.user import User


def get_user_by_address(db: Session, address: str) -> User | None:
    return db.execute(select(User).where(User.address == address)).scalar_one_or_none()


def get_or_create_user(db: Session, *, address: str) -> User:
    user = get_user_by_address(db, address)
    if user:
        return user

    user = User(address=address)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # concurrent request created it first
        db.rollback()
        existing = get_user_by_address(db, address)
        if existing is None:
            raise
        return existing
    db.refresh(user)
    return user
