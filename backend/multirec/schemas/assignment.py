"""Model assignment schemas"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class AssignmentResponse(BaseModel):
    """A user's sticky model assignment"""

    user_id: int
    model_id: int
    model_name: str
    assigned_at: Optional[datetime] = None
    degraded: bool = False

    class Config:
        from_attributes = True
        protected_namespaces = ()


class UserAssignmentResponse(BaseModel):
    assignment: AssignmentResponse


class BulkAssignmentResponse(BaseModel):
    """Result of a round-robin backfill"""

    assigned: int
    total: int
    skipped: int


class ModelResponse(BaseModel):
    """A registered recommendation model"""

    model_id: int
    name: str
    is_active: bool

    class Config:
        from_attributes = True
        protected_namespaces = ()


class ModelUsersResponse(BaseModel):
    model_id: int
    model_name: str
    users: int

    class Config:
        protected_namespaces = ()


class AssignmentStatsResponse(BaseModel):
    """Users per model"""

    total_users: int
    models: List[ModelUsersResponse]
    degraded: bool = False
