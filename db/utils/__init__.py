from .column_types import PortableJSON, PortableUUID
from .time import utcnow

__all__ = ["PortableJSON", "PortableUUID", "utcnow"]
