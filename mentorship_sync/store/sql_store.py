# mentorship_sync/store/sql_store.py
import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from .base import FieldFilter, Record, RecordStore, Transaction
from .change_feed import ChangeFeed, FeedSubscription, RecordChange
from ..config import get_settings
from ..constants import Collections
from ..exceptions import MentorshipError, StoreUnavailableError, TransactionConflictError
from ..models import MentorshipRequest, Profile
from ..utils.timestamp_utils import normalize_timestamp

logger = logging.getLogger(__name__)

T = TypeVar("T")

MODELS = {
    Collections.REQUESTS: MentorshipRequest,
    Collections.PROFILES: Profile,
}

# Columns managed by the store itself
PROTECTED_FIELDS = {"id", "version"}


def _model_for(collection: str):
    try:
        return MODELS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection '{collection}'")


def _column_names(model) -> List[str]:
    return [attr.key for attr in inspect(model).column_attrs]


def _to_record(obj) -> Record:
    record = {}
    for key in _column_names(type(obj)):
        if key == "version":
            continue
        value = getattr(obj, key)
        if isinstance(value, datetime) or key.endswith("_at"):
            value = normalize_timestamp(value)
        record[key] = value
    return record


def _writable_fields(model, fields: Record, allow_id: bool = False) -> Record:
    columns = set(_column_names(model))
    cleaned = {}
    for key, value in fields.items():
        if key not in columns:
            raise ValueError(f"'{key}' is not a field of {model.__tablename__}")
        if key in PROTECTED_FIELDS and not (allow_id and key == "id"):
            continue
        cleaned[key] = value
    return cleaned


class SessionTransaction(Transaction):
    """Transaction handle backed by one SQLAlchemy session."""

    def __init__(self, session: Session):
        self._session = session
        # The identity map is weak; holding the loaded objects pins the version
        # each write is checked against to the one the transaction body read.
        self._loaded: Dict[Tuple[str, str], object] = {}
        self._touched: Dict[Tuple[str, str], object] = {}

    def _load(self, collection: str, record_id: str):
        key = (collection, record_id)
        if key not in self._loaded:
            self._loaded[key] = self._session.get(_model_for(collection), record_id)
        return self._loaded[key]

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        obj = self._load(collection, record_id)
        return _to_record(obj) if obj is not None else None

    def update(self, collection: str, record_id: str, fields: Record) -> bool:
        model = _model_for(collection)
        obj = self._load(collection, record_id)
        if obj is None:
            return False
        for key, value in _writable_fields(model, fields).items():
            setattr(obj, key, value)
        self._touched[(collection, record_id)] = obj
        return True

    def changes(self) -> List[RecordChange]:
        return [
            RecordChange(collection, record_id, _to_record(obj))
            for (collection, record_id), obj in self._touched.items()
        ]


class SqlRecordStore(RecordStore):
    """
    RecordStore over the SQLAlchemy ORM.

    Session work is synchronous and runs in worker threads. Rows carry a
    version counter, so a transaction whose reads were invalidated by a
    concurrent commit fails its flush with StaleDataError and is re-run.
    Committed writes are published to the change feed for subscriptions.
    """

    def __init__(self, session_factory: sessionmaker, feed: Optional[ChangeFeed] = None, max_attempts: Optional[int] = None):
        self.session_factory = session_factory
        self.feed = feed or ChangeFeed()
        self.max_attempts = max_attempts or get_settings().TRANSACTION_MAX_ATTEMPTS

    async def _run(self, fn: Callable[..., T], *args) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except MentorshipError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Store operation {fn.__name__} failed: {e}")
            raise StoreUnavailableError() from e

    # --- create ---
    async def create(self, collection: str, record: Record) -> str:
        created = await self._run(self._create_sync, collection, record)
        await self.feed.publish([RecordChange(collection, created["id"], created)])
        return created["id"]

    def _create_sync(self, collection: str, record: Record) -> Record:
        model = _model_for(collection)
        with self.session_factory() as session:
            obj = model(**_writable_fields(model, record, allow_id=True))
            session.add(obj)
            session.commit()
            return _to_record(obj)

    # --- reads ---
    async def get_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        return await self._run(self._get_sync, collection, record_id)

    def _get_sync(self, collection: str, record_id: str) -> Optional[Record]:
        with self.session_factory() as session:
            obj = session.get(_model_for(collection), record_id)
            return _to_record(obj) if obj is not None else None

    async def query(self, collection: str, filters: Sequence[FieldFilter]) -> List[Record]:
        return await self._run(self._query_sync, collection, tuple(filters))

    def _query_sync(self, collection: str, filters: Tuple[FieldFilter, ...]) -> List[Record]:
        model = _model_for(collection)
        columns = set(_column_names(model))
        stmt = select(model)
        for f in filters:
            if f.field not in columns:
                raise ValueError(f"'{f.field}' is not a field of {model.__tablename__}")
            stmt = stmt.where(getattr(model, f.field) == f.value)
        with self.session_factory() as session:
            return [_to_record(obj) for obj in session.scalars(stmt)]

    async def subscribe(self, collection: str, filters: Sequence[FieldFilter]) -> FeedSubscription:
        _model_for(collection)
        subscription = FeedSubscription(self.feed, self.query, collection, filters)
        await subscription.start()
        return subscription

    # --- writes ---
    async def update(self, collection: str, record_id: str, fields: Record) -> bool:
        return await self.transaction(lambda txn: txn.update(collection, record_id, fields))

    async def transaction(self, fn: Callable[[Transaction], T]) -> T:
        result, changes = await self._run(self._transaction_sync, fn)
        await self.feed.publish(changes)
        return result

    def _transaction_sync(self, fn: Callable[[Transaction], T]) -> Tuple[T, List[RecordChange]]:
        for attempt in range(1, self.max_attempts + 1):
            with self.session_factory() as session:
                txn = SessionTransaction(session)
                try:
                    result = fn(txn)
                    session.commit()
                except (StaleDataError, TransactionConflictError) as e:
                    session.rollback()
                    logger.warning(f"Transaction conflict (attempt {attempt}/{self.max_attempts}): {e}")
                    continue
                return result, txn.changes()
        raise StoreUnavailableError(f"Transaction gave up after {self.max_attempts} conflicting attempts")
