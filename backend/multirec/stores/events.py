"""Event stores: persistent (SQL) and bounded in-memory buffer"""

import itertools
import threading
from collections import Counter, deque
from dataclasses import replace
from datetime import datetime
from typing import Dict, List

from sqlalchemy import select, func

from ..domain import EventRecord
from ..models import RecommendationEvent
from .base import EventStore, SqlStore


def _sorted_counts(counts: Dict[str, int]) -> List[Dict[str, object]]:
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"event_type": event_type, "cnt": cnt} for event_type, cnt in ordered]


class SqlEventStore(SqlStore, EventStore):
    """Events appended to the recommendation_events table"""

    store_name = "event"

    def append(self, event: EventRecord) -> EventRecord:
        row = RecommendationEvent(
            user_id=event.user_id,
            product_id=str(event.product_id) if event.product_id is not None else None,
            model_id=event.model_id,
            event_type=event.event_type,
            event_metadata=dict(event.metadata),
            created_at=event.created_at or datetime.utcnow(),
        )
        with self._session() as db:
            db.add(row)
            db.commit()
            return replace(event, id=row.id, created_at=row.created_at, durable=True)

    def counts_by_model(self, model_id: int) -> List[Dict[str, object]]:
        with self._session() as db:
            rows = db.execute(
                select(RecommendationEvent.event_type, func.count(RecommendationEvent.id))
                .where(RecommendationEvent.model_id == model_id)
                .group_by(RecommendationEvent.event_type)
            ).all()
        return _sorted_counts({event_type: count for event_type, count in rows})

    def user_events(self, user_id: int, limit: int = 50) -> List[EventRecord]:
        with self._session() as db:
            rows = db.execute(
                select(RecommendationEvent)
                .where(RecommendationEvent.user_id == user_id)
                .order_by(RecommendationEvent.created_at.desc(), RecommendationEvent.id.desc())
                .limit(limit)
            ).scalars().all()
            return [_to_record(row) for row in rows]

    def overall_stats(self) -> Dict[str, object]:
        with self._session() as db:
            total = db.execute(select(func.count(RecommendationEvent.id))).scalar() or 0
            by_type = db.execute(
                select(RecommendationEvent.event_type, func.count(RecommendationEvent.id))
                .group_by(RecommendationEvent.event_type)
            ).all()
            by_model = db.execute(
                select(RecommendationEvent.model_id, func.count(RecommendationEvent.id))
                .where(RecommendationEvent.model_id.isnot(None))
                .group_by(RecommendationEvent.model_id)
            ).all()

        return {
            "total_events": total,
            "event_types": {event_type: count for event_type, count in by_type},
            "models": {model_id: count for model_id, count in by_model},
        }


def _to_record(row: RecommendationEvent) -> EventRecord:
    return EventRecord(
        id=row.id,
        event_type=row.event_type,
        user_id=row.user_id,
        product_id=row.product_id,
        model_id=row.model_id,
        metadata=row.event_metadata or {},
        created_at=row.created_at,
    )


class InMemoryEventStore(EventStore):
    """
    Events kept for the process lifetime while the persistent store is down

    The buffer is bounded; once full the oldest events are dropped. Every
    record it hands out is marked non-durable.
    """

    def __init__(self, max_events: int = 10000):
        self._events = deque(maxlen=max_events)
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._events)

    def append(self, event: EventRecord) -> EventRecord:
        with self._lock:
            stored = replace(
                event,
                id=next(self._ids),
                created_at=event.created_at or datetime.utcnow(),
                durable=False,
            )
            self._events.append(stored)
        return stored

    def _snapshot(self) -> List[EventRecord]:
        with self._lock:
            return list(self._events)

    def counts_by_model(self, model_id: int) -> List[Dict[str, object]]:
        counts = Counter(e.event_type for e in self._snapshot() if e.model_id == model_id)
        return _sorted_counts(counts)

    def user_events(self, user_id: int, limit: int = 50) -> List[EventRecord]:
        events = [e for e in self._snapshot() if e.user_id == user_id]
        return list(reversed(events))[:limit]

    def overall_stats(self) -> Dict[str, object]:
        events = self._snapshot()
        return {
            "total_events": len(events),
            "event_types": dict(Counter(e.event_type for e in events)),
            "models": dict(Counter(e.model_id for e in events if e.model_id is not None)),
        }
