# mentorship_sync/store/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, TypeVar

Record = Dict[str, Any]
T = TypeVar("T")


@dataclass(frozen=True)
class FieldFilter:
    """Equality predicate on a single record field."""
    field: str
    value: Any

    def matches(self, record: Record) -> bool:
        return record.get(self.field) == self.value


def where(field: str, op: str, value: Any) -> FieldFilter:
    if op != "==":
        raise ValueError(f"Unsupported filter operator '{op}', only '==' is available")
    return FieldFilter(field, value)


class Transaction(ABC):
    """Handle passed to transaction bodies. Reads and writes share one snapshot."""

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Record]:
        ...

    @abstractmethod
    def update(self, collection: str, record_id: str, fields: Record) -> bool:
        """Stages a partial write; returns False when the record does not exist."""
        ...


class StoreSubscription(ABC):
    """
    Push-based stream of full snapshots for one query.

    Iterating yields a list of records each time the matching set changes.
    A store failure is raised once from the iterator, after which the stream
    is finished. ``close()`` may be called any number of times.
    """

    def __aiter__(self) -> AsyncIterator[List[Record]]:
        return self

    @abstractmethod
    async def __anext__(self) -> List[Record]:
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class RecordStore(ABC):
    """
    Persistence boundary of the request engine.

    Every record handed out is a plain dict carrying an ``id`` key, with
    timestamps already normalized to aware UTC datetimes.
    """

    @abstractmethod
    async def create(self, collection: str, record: Record) -> str:
        ...

    @abstractmethod
    async def get_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        ...

    @abstractmethod
    async def query(self, collection: str, filters: Sequence[FieldFilter]) -> List[Record]:
        ...

    @abstractmethod
    async def subscribe(self, collection: str, filters: Sequence[FieldFilter]) -> StoreSubscription:
        ...

    @abstractmethod
    async def update(self, collection: str, record_id: str, fields: Record) -> bool:
        ...

    @abstractmethod
    async def transaction(self, fn: Callable[[Transaction], T]) -> T:
        """
        Runs ``fn`` atomically. ``fn`` is synchronous and may be invoked more
        than once when a conflicting concurrent commit is detected, so it must
        not have side effects outside the transaction handle.
        """
        ...
