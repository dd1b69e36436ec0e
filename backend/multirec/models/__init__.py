"""Database models"""

from .base import Base
from .user import User
from .product import Product
from .interaction import Interaction
from .recommendation_model import RecommendationModel, ModelAssignment
from .event import RecommendationEvent

__all__ = [
    "Base",
    "User",
    "Product",
    "Interaction",
    "RecommendationModel",
    "ModelAssignment",
    "RecommendationEvent",
]
