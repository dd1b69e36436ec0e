"""Append-only recommendation event log"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..config import settings
from ..domain import Candidate, EventRecord
from ..errors import BackingStoreUnavailable, EventNotPersisted, InvalidArgument
from ..stores.base import EventStore
from ..stores.events import InMemoryEventStore
from ..utils.logging import get_logger
from ..utils.metrics import record_degraded, record_event

logger = get_logger(__name__)

IMPRESSION = "impression"


@dataclass
class CountsResult:
    counts: List[Dict[str, Any]] = field(default_factory=list)
    degraded: bool = False


def _optional_int(payload: Mapping[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidArgument(f"{key} must be an integer", details={key: value})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{key} must be an integer", details={key: value})


class EventLog:
    """
    Impression / click / cart_add / purchase events tagged with the model
    that produced the recommendation

    Writes go to the persistent store. When it is unreachable the event is
    kept in a bounded in-memory buffer and the write is still reported as
    failed, since the buffer does not survive a restart.
    """

    def __init__(self, store: EventStore, buffer: Optional[InMemoryEventStore] = None):
        self.store = store
        self.buffer = buffer if buffer is not None else InMemoryEventStore(settings.EVENT_BUFFER_SIZE)

    def log_event(self, payload: Mapping[str, Any]) -> EventRecord:
        """
        Append one event

        Args:
            payload: Mapping with event_type (required), user_id, product_id,
                model_id and metadata (all optional)

        Returns:
            Stored EventRecord

        Raises:
            InvalidArgument: event_type missing or blank
            EventNotPersisted: store down; the buffered record is attached
        """

        event_type = payload.get("event_type")
        if not isinstance(event_type, str) or not event_type.strip():
            raise InvalidArgument("event_type is required")

        product_id = payload.get("product_id")
        if isinstance(product_id, bool) or not isinstance(product_id, (str, int, type(None))):
            raise InvalidArgument("product_id must be a string or an integer", details={"product_id": product_id})
        metadata = payload.get("metadata") or {}
        if not isinstance(metadata, Mapping):
            raise InvalidArgument("metadata must be an object")

        event = EventRecord(
            id=None,
            event_type=event_type.strip(),
            user_id=_optional_int(payload, "user_id"),
            product_id=product_id,
            model_id=_optional_int(payload, "model_id"),
            metadata=dict(metadata),
            created_at=datetime.utcnow(),
        )

        try:
            stored = self.store.append(event)
        except BackingStoreUnavailable as e:
            buffered = self.buffer.append(event)
            logger.warning(
                "Event store unavailable, event buffered",
                event_type=event.event_type,
                buffered=len(self.buffer),
                error=str(e),
            )
            record_event(event.event_type, durable=False)
            record_degraded("event_log")
            raise EventNotPersisted(buffered, e) from e

        record_event(stored.event_type, durable=True)
        return stored

    def log_impressions(
        self,
        user_id: int,
        model_id: Optional[int],
        candidates: Iterable[Candidate],
        tier: Optional[str] = None,
    ) -> int:
        """
        One impression per shown recommendation

        Returns:
            Number of impressions stored durably
        """

        stored = 0
        for position, candidate in enumerate(candidates, start=1):
            try:
                self.log_event({
                    "event_type": IMPRESSION,
                    "user_id": user_id,
                    "product_id": candidate.product_id,
                    "model_id": model_id,
                    "metadata": {"rank": position, "score": candidate.score, "tier": tier},
                })
                stored += 1
            except EventNotPersisted:
                # Already buffered and logged by log_event
                continue
        return stored

    def counts_by_model(self, model_id: int) -> CountsResult:
        try:
            return CountsResult(counts=self.store.counts_by_model(model_id))
        except BackingStoreUnavailable as e:
            logger.warning("Event store unavailable, counting buffered events", model_id=model_id, error=str(e))
            record_degraded("event_log")
            return CountsResult(counts=self.buffer.counts_by_model(model_id), degraded=True)

    def user_events(self, user_id: int, limit: int = 50) -> List[EventRecord]:
        if limit < 1:
            raise InvalidArgument("limit must be positive", details={"limit": limit})
        try:
            return self.store.user_events(user_id, limit=limit)
        except BackingStoreUnavailable as e:
            logger.warning("Event store unavailable, reading buffered events", user_id=user_id, error=str(e))
            record_degraded("event_log")
            return self.buffer.user_events(user_id, limit=limit)

    def overall_stats(self) -> Dict[str, Any]:
        try:
            stats = self.store.overall_stats()
            stats["degraded"] = False
        except BackingStoreUnavailable as e:
            logger.warning("Event store unavailable, summarising buffered events", error=str(e))
            record_degraded("event_log")
            stats = self.buffer.overall_stats()
            stats["degraded"] = True

        stats["buffered_events"] = len(self.buffer)
        return stats
