"""Interaction model"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin

PURCHASE = "purchase"
VIEW = "view"
CART_ADD = "cart_add"

INTERACTION_TYPES = (PURCHASE, VIEW, CART_ADD)


class Interaction(Base, TimestampMixin):
    """User-product interaction, written by the order and cart flows"""

    __tablename__ = "interactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    interaction_type = Column(String(20), nullable=False)  # purchase, view, cart_add

    # Relationships
    user = relationship("User", back_populates="interactions")
    product = relationship("Product", back_populates="interactions")

    # Composite index for faster queries
    __table_args__ = (
        Index('ix_user_product', 'user_id', 'product_id'),
        Index('ix_interaction_type_product', 'interaction_type', 'product_id'),
    )

    def __repr__(self):
        return f"<Interaction(user_id={self.user_id}, product_id='{self.product_id}', type='{self.interaction_type}')>"
