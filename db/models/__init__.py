from db.models.user import User
from db.models.chat import Chat, ChatType
from db.models.message import Message
from db.models.transaction import Transaction, TxType

__all__ = ["User", "Chat", "ChatType", "Message", "Transaction", "TxType"]
