"""
QuoteLadderGenerator: symmetric bid/ask ladder around a mid price.

The spread widens with the pair's volatility estimate:

    spread = base_spread_pct * (1 + volatility * volatility_multiplier)

Level i (0-based) steps away from the touch by ``i * increment * factor``
where ``increment`` is half the touch width and ``factor = 1 + 0.1 * i``, so
deeper levels are both wider apart and larger. Prices are rounded to 5
decimals and sizes to 8 as the very last step.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional

from flashsim.core.models import Order, OrderKind, OrderSide
from flashsim.core.utils import apply_variance, now_ms, round_to_decimals

PRICE_DECIMALS = 5
SIZE_DECIMALS = 8
LEVEL_STEP = 0.1
CROSS_WIDEN = 0.0001


@dataclass(frozen=True)
class SpreadModel:
    base_spread_percentage: float
    volatility_multiplier: float = 1.0

    def spread(self, volatility: float) -> float:
        return self.base_spread_percentage * (1 + volatility * self.volatility_multiplier)


@dataclass
class LadderResult:
    orders: List[Order] = field(default_factory=list)
    skipped: bool = False
    reason: Optional[str] = None
    best_bid: Optional[float] = None
    best_ask: Optional[float] = None


class QuoteLadderGenerator:
    def __init__(self, pair: str, rng: Optional[random.Random] = None) -> None:
        self.pair = pair
        self.rng = rng or random.Random()

    def generate(
        self,
        mid_price: float,
        spread_model: SpreadModel,
        depth_levels: int,
        base_size_per_level: float,
        size_randomization: float,
        volatility_estimate: float = 0.0,
    ) -> LadderResult:
        spread = spread_model.spread(volatility_estimate)
        best_ask = mid_price * (1 + spread / 2)
        best_bid = mid_price * (1 - spread / 2)
        if best_bid >= best_ask:
            best_ask *= 1 + CROSS_WIDEN
            best_bid *= 1 - CROSS_WIDEN
            if best_bid >= best_ask:
                return LadderResult(skipped=True, reason="crossed_after_widen", best_bid=best_bid, best_ask=best_ask)

        increment = (best_ask - best_bid) / 2
        ts = now_ms()
        orders: List[Order] = []
        for i in range(depth_levels):
            factor = 1 + i * LEVEL_STEP
            step = i * increment * factor
            for side, raw_price in ((OrderSide.BID, best_bid - step), (OrderSide.ASK, best_ask + step)):
                raw_size = apply_variance(base_size_per_level * factor, size_randomization, self.rng)
                # checked after rounding: a sub-lot size must never rest as 0.0
                price = round_to_decimals(raw_price, PRICE_DECIMALS)
                size = round_to_decimals(raw_size, SIZE_DECIMALS)
                if price <= 0 or size <= 0:
                    continue
                orders.append(
                    Order(
                        pair=self.pair,
                        side=side,
                        kind=OrderKind.LIMIT,
                        size=size,
                        price=price,
                        timestamp_ms=ts,
                        level=i + 1,
                    )
                )
        return LadderResult(orders=orders, best_bid=best_bid, best_ask=best_ask)
