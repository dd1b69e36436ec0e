"""Product model"""

from sqlalchemy import Column, Integer, String, Text, JSON, Float, Numeric
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Product(Base, TimestampMixin):
    """Catalogue entry (a book, keyed by ISBN)"""

    __tablename__ = "products"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(500), nullable=False, index=True)
    category = Column(String(100), index=True)
    price = Column(Numeric(10, 2), default=0)
    author = Column(String(255), index=True)
    publisher = Column(String(255))
    description = Column(Text)
    image_url = Column(String(1000))
    tags = Column(JSON, default=list)  # Keywords for content-based matching
    stock = Column(Integer, default=0)
    avg_rating = Column(Float, default=0.0)
    review_count = Column(Integer, default=0)
    popularity_score = Column(Float, default=0.0)  # Precomputed, see services.popularity

    # Relationships
    interactions = relationship("Interaction", back_populates="product", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Product(id='{self.id}', name='{self.name}')>"
