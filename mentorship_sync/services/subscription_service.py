# mentorship_sync/services/subscription_service.py
import logging
from typing import Any, Dict, List, Sequence

from ..constants import Collections
from ..models import RequestStatus
from ..schemas import MentorshipRequestRecord
from ..store import FieldFilter, RecordStore, StoreSubscription, where
from ..utils.timestamp_utils import normalize_timestamp, sort_key

logger = logging.getLogger(__name__)


def order_newest_first(records: Sequence[Dict[str, Any]]) -> List[MentorshipRequestRecord]:
    """Sorts by created_at descending; records without a usable timestamp go last."""
    normalized = [
        {**record, "created_at": normalize_timestamp(record.get("created_at")), "updated_at": normalize_timestamp(record.get("updated_at"))}
        for record in records
    ]
    ordered = sorted(normalized, key=lambda record: sort_key(record["created_at"]), reverse=True)
    return [MentorshipRequestRecord.model_validate(record) for record in ordered]


class RequestStream:
    """
    Live view of a filtered set of requests.

    Iterate with ``async for`` to receive the full, newest-first list on every
    change. ``dispose()`` stops emissions and releases the underlying watch;
    calling it again does nothing. Used as an async context manager the stream
    is disposed on every exit path.
    """

    def __init__(self, subscription: StoreSubscription, name: str):
        self._subscription = subscription
        self.name = name
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[MentorshipRequestRecord]:
        snapshot = await self._subscription.__anext__()
        return order_newest_first(snapshot)

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        self._subscription.close()
        logger.debug(f"Request stream {self.name} disposed")

    async def __aenter__(self) -> "RequestStream":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.dispose()


class SubscriptionService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def _watch(self, filters: List[FieldFilter], name: str) -> RequestStream:
        subscription = await self.store.subscribe(Collections.REQUESTS, filters)
        logger.debug(f"Request stream {name} opened")
        return RequestStream(subscription, name)

    async def watch_pending_for_mentor(self, mentor_id: str) -> RequestStream:
        """Pending requests addressed to ``mentor_id``."""
        return await self._watch(
            [where("mentor_id", "==", mentor_id), where("status", "==", RequestStatus.PENDING.value)],
            f"pending-for-mentor:{mentor_id}",
        )

    async def watch_all_for_mentee(self, mentee_id: str) -> RequestStream:
        """Every request sent by ``mentee_id``, whatever its status."""
        return await self._watch([where("mentee_id", "==", mentee_id)], f"all-for-mentee:{mentee_id}")
