"""Pydantic schemas for request/response validation"""

from .recommendation import RecommendationResponse, RecommendationItemResponse
from .assignment import (
    AssignmentResponse,
    UserAssignmentResponse,
    BulkAssignmentResponse,
    ModelResponse,
    AssignmentStatsResponse,
)
from .event import EventCreate, EventResponse, EventCountResponse, EventStatsResponse, UserEventsResponse

__all__ = [
    "RecommendationResponse",
    "RecommendationItemResponse",
    "AssignmentResponse",
    "UserAssignmentResponse",
    "BulkAssignmentResponse",
    "ModelResponse",
    "AssignmentStatsResponse",
    "EventCreate",
    "EventResponse",
    "EventCountResponse",
    "EventStatsResponse",
    "UserEventsResponse",
]
