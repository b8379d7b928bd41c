"""
Domain types shared by the bots, strategies and execution layer.

Prices and sizes are floats that are rounded at emission time (prices to
5 decimals, sizes to 8). Anything comparing two orders must go through the
tolerance bands in ``flashsim.execution.order_matcher`` rather than ``==``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, TYPE_CHECKING

from flashsim.core.utils import now_ms

if TYPE_CHECKING:
    from flashsim.config.config import PairConfig


class OrderSide(str, Enum):
    BID = "bid"
    ASK = "ask"

    @property
    def is_buy(self) -> bool:
        return self is OrderSide.BID

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.ASK if self is OrderSide.BID else OrderSide.BID


class OrderKind(str, Enum):
    LIMIT = "limit"
    MARKET = "market"


class OrderStatus(str, Enum):
    NEW = "new"
    OPEN = "open"
    CLOSED = "closed"
    CANCELED = "canceled"


@dataclass
class Order:
    """
    A desired or resting order.

    Before placement an order is identified by its slot in the generated
    batch; after placement by the venue-assigned ``id``.
    """
    pair: str
    side: OrderSide
    kind: OrderKind
    size: float
    price: Optional[float] = None
    timestamp_ms: int = field(default_factory=now_ms)
    level: Optional[int] = None
    id: Optional[str] = None
    status: Optional[OrderStatus] = None

    def __post_init__(self) -> None:
        if self.kind is OrderKind.LIMIT and self.price is None:
            raise ValueError("limit order requires a price")
        if self.kind is OrderKind.MARKET and self.price is not None:
            raise ValueError("market order must not carry a price")

    def placed(self, order_id: str) -> "Order":
        """Copy of this order as acknowledged by the venue."""
        return replace(self, id=order_id, status=OrderStatus.NEW)

    def describe(self) -> dict:
        return {
            "side": self.side.value,
            "kind": self.kind.value,
            "px": self.price,
            "sz": self.size,
            "level": self.level,
            "id": self.id,
        }


@dataclass(frozen=True)
class OrderMatch:
    """Comparison of one resting order against one candidate."""
    resting: Order
    candidate: Order
    price_deviation: float
    size_deviation: float

    @property
    def total_deviation(self) -> float:
        return self.price_deviation + self.size_deviation


@dataclass(frozen=True)
class Ticker:
    symbol: str
    bid: Optional[float]
    ask: Optional[float]
    last: Optional[float]
    timestamp_ms: int

    @property
    def has_touch(self) -> bool:
        return bool(self.bid) and bool(self.ask)

    @property
    def mid(self) -> float:
        if not self.has_touch:
            raise ValueError(f"ticker {self.symbol} has no two-sided touch")
        return (self.bid + self.ask) / 2  # type: ignore[operator]


@dataclass(frozen=True)
class TradingPair:
    """
    A venue pair and the reference market used to price it.

    ``symbol`` is the internal name (``BTC-USDB``), ``market_symbol`` the
    reference-exchange symbol (``BTC/USD``).
    """
    symbol: str
    base_asset: str
    quote_asset: str
    market_symbol: str
    config: "PairConfig"
