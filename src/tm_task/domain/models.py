"""Domain models for tm_task: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Union


@dataclass(frozen=True)
class PlainLine:
    """Order with no product attached: the drawn target is the amount."""

    amount: int  # cents


@dataclass(frozen=True)
class ProductLine:
    """Order bound to a catalog product: amount = unit_price * quantity."""

    product_id: int
    title: str
    image_url: str | None
    unit_price: int  # cents
    quantity: int

    @property
    def amount(self) -> int:
        return self.unit_price * self.quantity


OrderLine = Union[PlainLine, ProductLine]


@dataclass
class TaskOrder:
    id: str
    user_id: str
    amount: int                      # cents
    commission: int                  # cents
    commission_rate_bps: int
    status: str                      # OrderStatus value
    origin: str                      # OrderOrigin value
    dispatch_override_id: int | None = None
    product_id: int | None = None
    product_title: str | None = None
    product_image_url: str | None = None
    unit_price: int | None = None
    quantity: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    settled_at: datetime | None = None

    @property
    def total_return(self) -> int:
        return self.amount + self.commission

    @property
    def product_label(self) -> str | None:
        if self.product_title and self.quantity:
            return f"{self.product_title} x {self.quantity}"
        return None


@dataclass(frozen=True)
class MatchParams:
    """Tunables for target drawing and product sizing. All amounts in cents."""

    min_balance: int
    min_line_total: int
    max_quantity: int
    min_ratio_bps: int
    max_ratio_bps: int


@dataclass
class MatchContext:
    """What a match token stands for. Held by the match cache only."""

    user_id: str
    order_id: str
    amount: int
    commission: int
    commission_rate_bps: int
    total_return: int
    origin: str
    issued_at: float                 # epoch seconds
    dispatch_override_id: int | None = None
    product_label: str | None = None
    unit_price: int | None = None
    quantity: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MatchContext":
        return cls(**data)


@dataclass
class MatchResult:
    token: str
    context: MatchContext


@dataclass
class SettlementResult:
    order_id: str
    amount: int
    commission: int
    total_return: int
    new_daily_count: int
    balance: int
