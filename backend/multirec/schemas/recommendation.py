"""Recommendation schemas"""

from pydantic import BaseModel
from typing import Optional, List


class RecommendationItemResponse(BaseModel):
    """Schema for a single recommended product"""

    product_id: str
    score: float
    rank: int
    product_name: Optional[str] = None
    price: Optional[float] = None
    product_image: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None

    class Config:
        # Strategy specific fields (purchase_count, mock) pass through
        extra = "allow"


class RecommendationResponse(BaseModel):
    """Schema for recommendation response"""

    model: str
    model_id: Optional[int] = None
    tier: Optional[str] = None
    degraded: bool = False
    recommendations: List[RecommendationItemResponse]

    class Config:
        protected_namespaces = ()
