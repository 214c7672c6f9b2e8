# mentorship_sync/store/change_feed.py
import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from .base import FieldFilter, Record, StoreSubscription
from ..exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordChange:
    collection: str
    record_id: str
    record: Record


Listener = Callable[[List[RecordChange]], Awaitable[None]]


class ChangeFeed:
    """In-process fan-out of committed record changes to live subscriptions."""

    def __init__(self):
        self._listeners: Dict[int, Tuple[str, Listener]] = {}
        self._tokens = itertools.count(1)

    def add_listener(self, collection: str, listener: Listener) -> int:
        token = next(self._tokens)
        self._listeners[token] = (collection, listener)
        return token

    def remove_listener(self, token: int) -> bool:
        return self._listeners.pop(token, None) is not None

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def publish(self, changes: Sequence[RecordChange]):
        if not changes:
            return
        for token, (collection, listener) in list(self._listeners.items()):
            relevant = [change for change in changes if change.collection == collection]
            if not relevant or token not in self._listeners:
                continue
            try:
                await listener(relevant)
            except Exception as e:
                # The write already committed; a broken listener must not fail the writer
                logger.error(f"Change listener {token} failed: {e}", exc_info=True)


_EMPTY = object()
_CLOSED = object()

QueryFn = Callable[[str, Sequence[FieldFilter]], Awaitable[List[Record]]]


class FeedSubscription(StoreSubscription):
    """
    Re-runs its query whenever the feed reports a change touching the result set.

    Listeners only mark the subscription dirty; one background task re-queries,
    so writers never wait on subscribers. Only the newest unread snapshot is
    kept. A terminal item (store failure or close) is never replaced.
    """

    def __init__(self, feed: ChangeFeed, query: QueryFn, collection: str, filters: Sequence[FieldFilter]):
        self._feed = feed
        self._query = query
        self._collection = collection
        self._filters = tuple(filters)
        self._pending = _EMPTY
        self._ready = asyncio.Event()
        self._lock = asyncio.Lock()
        self._token: Optional[int] = None
        self._member_ids = set()
        self._dirty = False
        self._refresher: Optional[asyncio.Task] = None
        self._stopped = False # no more emissions will be produced
        self._closed = False # caller asked to stop
        self._finished = False # iterator exhausted

    async def start(self):
        self._token = self._feed.add_listener(self._collection, self._on_change)
        await self._refresh()

    def _affects(self, change: RecordChange) -> bool:
        if change.record_id in self._member_ids:
            return True
        return all(f.matches(change.record) for f in self._filters)

    async def _on_change(self, changes: List[RecordChange]):
        if self._stopped:
            return
        if any(self._affects(change) for change in changes):
            self._dirty = True
            if self._refresher is None or self._refresher.done():
                self._refresher = asyncio.create_task(self._drain())

    async def _drain(self):
        # Changes arriving mid-query set _dirty again and trigger one more pass
        while self._dirty and not self._stopped:
            self._dirty = False
            try:
                await self._refresh()
            except Exception as e:
                logger.error(f"Subscription on '{self._collection}' failed: {e}", exc_info=True)
                self._terminate(e)

    async def _refresh(self):
        async with self._lock:
            if self._stopped:
                return
            try:
                records = await self._query(self._collection, self._filters)
            except StoreUnavailableError as e:
                logger.error(f"Subscription on '{self._collection}' terminated: {e}")
                self._terminate(e)
                return
            self._member_ids = {record["id"] for record in records}
            self._offer(records)

    def _terminate(self, error: Exception):
        self._stopped = True
        self._release()
        self._offer(error)

    def _offer(self, item):
        if self._pending is _CLOSED or isinstance(self._pending, Exception):
            return
        self._pending = item
        self._ready.set()

    def _release(self):
        if self._token is not None:
            self._feed.remove_listener(self._token)
            self._token = None

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._stopped = True
        self._release()
        if self._refresher is not None and not self._refresher.done():
            self._refresher.cancel()
        self._offer(_CLOSED)

    async def __anext__(self) -> List[Record]:
        if self._finished or self._closed:
            self._finished = True
            raise StopAsyncIteration
        await self._ready.wait()
        item, self._pending = self._pending, _EMPTY
        self._ready.clear()
        if item is _CLOSED or self._closed:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, Exception):
            self._finished = True
            raise item
        return item
