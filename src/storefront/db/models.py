# provide dataclass models

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str  # stored stripped and lower-cased
    password_hash: str
    created_at: datetime

    def summary(self) -> "UserSummary":
        return UserSummary(id=self.id, name=self.name, email=self.email)


@dataclass(frozen=True)
class UserSummary:
    """What callers get to see of a user. Never carries the hash."""

    id: str
    name: str
    email: str


@dataclass(frozen=True)
class Review:
    user: str
    comment: str
    rating: float


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    description: str = ""
    image: Optional[str] = None
    category: str = ""
    sub_category: str = ""
    rating: float = 0.0
    in_stock: bool = True
    free_shipping: bool = False
    reviews: Tuple[Review, ...] = ()


@dataclass(frozen=True)
class LineItem:
    product_id: str
    qty: int


@dataclass(frozen=True)
class Cart:
    user_id: str
    items: Tuple[LineItem, ...] = ()

    @property
    def count(self) -> int:
        return sum(item.qty for item in self.items)

    def is_empty(self) -> bool:
        return not self.items


class OrderStatus(str, Enum):
    # DRAFT is the cart itself; only PLACED orders are ever stored
    DRAFT = "draft"
    PRICED = "priced"
    PLACED = "placed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class OrderLine:
    line_no: int
    product_id: str
    name: str
    qty: int
    unit_price: float  # unit price at time of order

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.qty


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    address: str
    total: float
    status: OrderStatus
    created_at: datetime
    lines: Tuple[OrderLine, ...] = field(default_factory=tuple)
