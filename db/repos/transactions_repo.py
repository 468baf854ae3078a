from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.transaction import Transaction, TxType


def store_transaction(
    db: Session,
    *,
    user_id: uuid.UUID,
    tx_type: TxType,
    metadata: dict[str, Any],
) -> Transaction:
    transaction = Transaction(user_id=user_id, type=tx_type.value, tx_metadata=metadata)
    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    return transaction


def get_transaction(db: Session, transaction_id: uuid.UUID) -> Transaction | None:
    return db.execute(select(Transaction).where(Transaction.id == transaction_id)).scalar_one_or_none()


def list_transactions_for_user(db: Session, *, user_id: uuid.UUID) -> list[Transaction]:
    stmt = (
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.asc())
    )
    return list(db.execute(stmt).scalars().all())
