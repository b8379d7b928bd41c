"""
Taker decision logic: pick a strategy, then turn it into at most one order.

Strategies:
- random: coin-flip side
- momentum: trade with the move across the lookback window
- mean_reversion: trade against a deviation from the window mean; no
  signal means no order this cycle
- passive_limit: always a limit order, just inside the touch

Two "no signal" policies are intentionally different. A strategy draw that
lands past the configured probabilities falls back to ``random``, while a
mean-reversion cycle without a signal places nothing.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional

from flashsim.config.config import MarketTakerConfig, StrategyProbabilities
from flashsim.core.models import Order, OrderKind, OrderSide, Ticker
from flashsim.core.utils import apply_variance, coin_flip, now_ms, random_between, round_to_decimals
from flashsim.infra.logging_cfg import DEBUG, WARNING, log_event

log = logging.getLogger("flashsim")

PRICE_DECIMALS = 5
SIZE_DECIMALS = 8

PASSIVE_IMPROVE_MIN = 0.0001
PASSIVE_IMPROVE_MAX = 0.0005


class Strategy(str, Enum):
    RANDOM = "random"
    MOMENTUM = "momentum"
    MEAN_REVERSION = "mean_reversion"
    PASSIVE_LIMIT = "passive_limit"


def choose_strategy(probabilities: StrategyProbabilities, rng: Optional[random.Random] = None) -> Strategy:
    """Cumulative draw in declaration order; a draw past the total is ``random``."""
    r = (rng or random).random()
    cumulative = 0.0
    for strategy, p in (
        (Strategy.RANDOM, probabilities.random),
        (Strategy.MOMENTUM, probabilities.momentum),
        (Strategy.MEAN_REVERSION, probabilities.mean_reversion),
        (Strategy.PASSIVE_LIMIT, probabilities.passive_limit),
    ):
        cumulative += p
        if r < cumulative:
            return strategy
    return Strategy.RANDOM


class PriceHistory:
    """Last ``maxlen`` observed prices, oldest first."""

    def __init__(self, maxlen: int) -> None:
        self._prices: Deque[float] = deque(maxlen=max(1, maxlen))

    def push(self, price: float) -> None:
        self._prices.append(price)

    def values(self) -> List[float]:
        return list(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    @property
    def oldest(self) -> float:
        return self._prices[0]

    @property
    def latest(self) -> float:
        return self._prices[-1]

    def mean(self) -> float:
        return sum(self._prices) / len(self._prices)


@dataclass
class TakerOrderSynthesizer:
    """Builds the taker's order for one cycle from a strategy and the current touch."""
    pair: str
    config: MarketTakerConfig
    rng: random.Random

    def generate(self, strategy: Strategy, ticker: Ticker, history: PriceHistory) -> Optional[Order]:
        is_market = self.rng.random() < self.config.market_order_probability
        size = round_to_decimals(
            apply_variance(self.config.base_order_size, self.config.size_randomization_factor, self.rng),
            SIZE_DECIMALS,
        )
        if size <= 0:
            return None
        if not ticker.bid or not ticker.ask or not ticker.last:
            return None
        bid, ask = ticker.bid, ticker.ask
        mid = (bid + ask) / 2

        kind = OrderKind.MARKET if is_market else OrderKind.LIMIT
        side: Optional[OrderSide] = None
        price: Optional[float] = None

        if strategy is Strategy.MOMENTUM:
            side = self._momentum_side(history)
        elif strategy is Strategy.MEAN_REVERSION:
            side = self._mean_reversion_side(ticker.last, history)
            if side is None:
                return None
        elif strategy is Strategy.PASSIVE_LIMIT:
            kind = OrderKind.LIMIT
            side = self._flip()
            improve = random_between(PASSIVE_IMPROVE_MIN, PASSIVE_IMPROVE_MAX, self.rng)
            if side is OrderSide.BID:
                price = min(round_to_decimals(bid * (1 + improve), PRICE_DECIMALS), ask)
            else:
                price = max(round_to_decimals(ask * (1 - improve), PRICE_DECIMALS), bid)
        else:
            side = self._flip()

        if kind is OrderKind.LIMIT and price is None:
            price = self._limit_price(side, bid, ask, mid)
        if price is not None:
            price = round_to_decimals(price, PRICE_DECIMALS)

        if kind is OrderKind.LIMIT:
            if price is None or price <= 0:
                log_event(log, "taker_invalid_limit_price", level=WARNING, pair=self.pair, px=price)
                kind, price = OrderKind.MARKET, None
            elif side is OrderSide.BID and price > ask:
                log_event(log, "taker_limit_clamped", level=DEBUG, pair=self.pair, side=side.value, px=price, to=ask)
                price = ask
            elif side is OrderSide.ASK and price < bid:
                log_event(log, "taker_limit_clamped", level=DEBUG, pair=self.pair, side=side.value, px=price, to=bid)
                price = bid

        return Order(pair=self.pair, side=side, kind=kind, size=size, price=price, timestamp_ms=now_ms())

    def _flip(self) -> OrderSide:
        return OrderSide.BID if coin_flip(self.rng) else OrderSide.ASK

    def _momentum_side(self, history: PriceHistory) -> OrderSide:
        if len(history) >= 2:
            trend = history.latest - history.oldest
            if trend > 0:
                return OrderSide.BID
            if trend < 0:
                return OrderSide.ASK
        return self._flip()

    def _mean_reversion_side(self, last: float, history: PriceHistory) -> Optional[OrderSide]:
        if len(history) <= 1:
            return None
        avg = history.mean()
        deviation = (last - avg) / avg
        threshold = self.config.mean_reversion_threshold
        if deviation > threshold:
            return OrderSide.ASK
        if deviation < -threshold:
            return OrderSide.BID
        return None

    def _limit_price(self, side: OrderSide, bid: float, ask: float, mid: float) -> float:
        if side is OrderSide.BID:
            price = round_to_decimals(random_between(bid * 0.9995, mid, self.rng), PRICE_DECIMALS)
            price = min(price, ask * 0.9999)
            price = max(price, bid * 0.99)
            if price >= ask:
                price = ask
        else:
            price = round_to_decimals(random_between(mid, ask * 1.0005, self.rng), PRICE_DECIMALS)
            price = max(price, bid * 1.0001)
            price = min(price, ask * 1.01)
            if price <= bid:
                price = bid
        return price
