"""Recommendation event schemas"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Union
from datetime import datetime


class EventCreate(BaseModel):
    """
    Schema for logging an event

    event_type is checked by the event log itself so a missing type is
    reported as a 400 like every other invalid argument.
    """

    event_type: Optional[str] = Field(None, description="impression, click, cart_add, purchase, ...")
    user_id: Optional[int] = None
    product_id: Optional[Union[str, int]] = None
    model_id: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        protected_namespaces = ()


class EventResponse(BaseModel):
    """A stored event"""

    id: Optional[int] = None
    event_type: str
    user_id: Optional[int] = None
    product_id: Optional[Union[str, int]] = None
    model_id: Optional[int] = None
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
    durable: bool = True

    class Config:
        from_attributes = True
        protected_namespaces = ()


class EventCountResponse(BaseModel):
    event_type: str
    cnt: int


class EventStatsResponse(BaseModel):
    """Event totals"""

    total_events: int
    event_types: Dict[str, int]
    models: Dict[int, int]
    degraded: bool = False
    buffered_events: int = 0


class UserEventsResponse(BaseModel):
    user_id: int
    events: List[EventResponse]
