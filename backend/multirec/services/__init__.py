"""Recommendation services"""

from .collaborative_filtering import CollaborativeFilteringService
from .content_based import ContentBasedService
from .graph_based import GraphBasedService
from .fallback import FallbackChain, FallbackStep, ScoringResult, ScoringStrategy
from .assignment import AssignmentService, BulkAssignmentResult
from .event_log import EventLog, CountsResult
from .orchestrator import RecommendationOrchestrator, RecommendationOutcome

__all__ = [
    "CollaborativeFilteringService",
    "ContentBasedService",
    "GraphBasedService",
    "FallbackChain",
    "FallbackStep",
    "ScoringResult",
    "ScoringStrategy",
    "AssignmentService",
    "BulkAssignmentResult",
    "EventLog",
    "CountsResult",
    "RecommendationOrchestrator",
    "RecommendationOutcome",
]
