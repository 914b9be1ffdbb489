"""Repository layer: the Storage contract and its two backends."""
import logging
from typing import Optional

from ..database import DATABASE_CONFIGURED
from .base import Storage, build_record, merge_record, new_public_token
from .memory import MemStorage
from .sql import SqlStorage

logger = logging.getLogger(__name__)

_storage: Optional[Storage] = None


def get_storage() -> Storage:
    """Process-wide storage: SQL when DATABASE_URL is set, in-memory otherwise."""
    global _storage
    if _storage is None:
        if DATABASE_CONFIGURED:
            _storage = SqlStorage()
        else:
            logger.warning("DATABASE_URL not set; using in-memory storage")
            _storage = MemStorage()
        logger.info(f"Storage backend: {_storage.backend_name}")
    return _storage


__all__ = [
    "Storage",
    "MemStorage",
    "SqlStorage",
    "get_storage",
    "build_record",
    "merge_record",
    "new_public_token",
]
