"""Recommendation event API endpoints"""

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from typing import List

from ..errors import EventNotPersisted
from ..schemas.event import (
    EventCountResponse,
    EventCreate,
    EventResponse,
    EventStatsResponse,
    UserEventsResponse,
)
from ..services import EventLog
from ..utils.dependencies import get_event_log

router = APIRouter()


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def log_event(event: EventCreate, event_log: EventLog = Depends(get_event_log)):
    """
    Log an impression, click, cart_add or purchase event

    When the event store is down the event is kept in memory and the
    response is a 503 carrying the buffered (non-durable) event.
    """

    try:
        stored = event_log.log_event(event.model_dump())
    except EventNotPersisted as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": e.message, "event": jsonable_encoder(e.event.to_dict())},
        )

    return stored.to_dict()


@router.get("/model/{model_id}/counts", response_model=List[EventCountResponse])
def model_event_counts(
    model_id: int,
    response: Response,
    event_log: EventLog = Depends(get_event_log),
):
    """Event counts per type for one model, most frequent first"""

    result = event_log.counts_by_model(model_id)
    if result.degraded:
        response.headers["X-Degraded"] = "true"
    return result.counts


@router.get("/user/{user_id}", response_model=UserEventsResponse)
def user_events(
    user_id: int,
    limit: int = Query(50, ge=1, le=500),
    event_log: EventLog = Depends(get_event_log),
):
    """Most recent events of a user"""

    events = event_log.user_events(user_id, limit=limit)
    return {"user_id": user_id, "events": [event.to_dict() for event in events]}


@router.get("/stats", response_model=EventStatsResponse)
def event_stats(event_log: EventLog = Depends(get_event_log)):
    """Totals by event type and by model"""

    return event_log.overall_stats()
