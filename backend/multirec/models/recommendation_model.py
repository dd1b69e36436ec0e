"""Recommendation model registry and A/B assignment models"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class RecommendationModel(Base, TimestampMixin):
    """A scoring strategy users can be assigned to"""

    __tablename__ = "recommendation_models"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)  # collaborative, content, graph
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    assignments = relationship("ModelAssignment", back_populates="model")

    def __repr__(self):
        return f"<RecommendationModel(name='{self.name}', active={self.is_active})>"


class ModelAssignment(Base):
    """Sticky user -> model assignment, one row per user"""

    __tablename__ = "user_model_assignments"

    user_id = Column(Integer, primary_key=True)
    model_id = Column(Integer, ForeignKey("recommendation_models.id"), nullable=False, index=True)
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    model = relationship("RecommendationModel", back_populates="assignments")

    def __repr__(self):
        return f"<ModelAssignment(user_id={self.user_id}, model_id={self.model_id})>"
