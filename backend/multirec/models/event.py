"""Recommendation event model"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
from .base import Base


class RecommendationEvent(Base):
    """Append-only impression / click / cart_add / purchase log"""

    __tablename__ = "recommendation_events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True)
    product_id = Column(String(64))
    model_id = Column(Integer)
    event_type = Column(String(50), nullable=False)
    # "metadata" is reserved on declarative classes
    event_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('ix_event_model_type', 'model_id', 'event_type'),
    )

    def __repr__(self):
        return f"<RecommendationEvent(id={self.id}, type='{self.event_type}', model_id={self.model_id})>"
