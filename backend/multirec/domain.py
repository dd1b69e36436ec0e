"""Canonical records passed between the stores and the services

Store adapters convert their rows into these types so nothing above the
adapter boundary depends on how a backend names or cases its columns.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class ProductRecord:
    """Product attributes the scoring strategies read"""

    product_id: str
    name: str
    category: Optional[str] = None
    price: float = 0.0
    author: Optional[str] = None
    publisher: Optional[str] = None
    image: Optional[str] = None
    tags: Tuple[str, ...] = ()
    stock: int = 0
    purchase_count: int = 0
    avg_rating: float = 0.0
    review_count: int = 0
    popularity_score: float = 0.0

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


@dataclass(frozen=True)
class Candidate:
    """A scored recommendation with optional display fields"""

    product_id: str
    score: float
    name: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def sort_key(self) -> Tuple[float, str]:
        return (-self.score, self.product_id)

    @classmethod
    def from_product(cls, product: ProductRecord, score: float, **extra) -> "Candidate":
        return cls(
            product_id=product.product_id,
            score=score,
            name=product.name,
            price=product.price,
            image=product.image,
            category=product.category,
            author=product.author,
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "product_id": self.product_id,
            "score": self.score,
            "product_name": self.name,
            "price": self.price,
            "product_image": self.image,
            "category": self.category,
            "author": self.author,
        }
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class ModelInfo:
    """A recommendation model (strategy) as registered in the assignment store"""

    model_id: int
    name: str
    is_active: bool = True


DEFAULT_MODELS = (
    ModelInfo(1, "collaborative"),
    ModelInfo(2, "content"),
    ModelInfo(3, "graph"),
)


@dataclass(frozen=True)
class Assignment:
    """A user's sticky model assignment"""

    user_id: int
    model_id: int
    model_name: str
    assigned_at: Optional[datetime] = None
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "model_id": self.model_id,
            "model_name": self.model_name,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "degraded": self.degraded,
        }


@dataclass(frozen=True)
class EventRecord:
    """A logged recommendation event"""

    id: Optional[int]
    event_type: str
    user_id: Optional[int] = None
    product_id: Optional[Union[str, int]] = None
    model_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    durable: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "model_id": self.model_id,
            "event_type": self.event_type,
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "durable": self.durable,
        }
