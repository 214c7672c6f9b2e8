# mentorship_sync/store/__init__.py
from .base import FieldFilter, RecordStore, StoreSubscription, Transaction, where
from .change_feed import ChangeFeed, RecordChange
from .sql_store import SqlRecordStore

__all__ = [
    "ChangeFeed",
    "FieldFilter",
    "RecordChange",
    "RecordStore",
    "SqlRecordStore",
    "StoreSubscription",
    "Transaction",
    "where",
]
