"""
Tolerance-band matching between a resting order and newly desired orders.

Pure functions with no side effects: identical inputs always produce the
same match.
"""

from __future__ import annotations

from typing import Iterable, Optional

from flashsim.core.models import Order, OrderMatch

DEFAULT_MAX_PRICE_DEVIATION = 0.001  # 0.1%
DEFAULT_MAX_SIZE_DEVIATION = 0.1     # 10%


def compare_orders(resting: Order, candidate: Order) -> OrderMatch:
    """
    Relative deviations of ``candidate`` from ``resting``.

    A missing price on either side (market orders) counts as a full 100%
    price deviation so such orders never match a limit order.
    """
    if resting.price and candidate.price:
        price_deviation = abs(resting.price - candidate.price) / resting.price
    else:
        price_deviation = 1.0
    if resting.size > 0:
        size_deviation = abs(resting.size - candidate.size) / resting.size
    else:
        size_deviation = 1.0
    return OrderMatch(
        resting=resting,
        candidate=candidate,
        price_deviation=price_deviation,
        size_deviation=size_deviation,
    )


def should_replace(
    match: OrderMatch,
    max_price_deviation: float = DEFAULT_MAX_PRICE_DEVIATION,
    max_size_deviation: float = DEFAULT_MAX_SIZE_DEVIATION,
) -> bool:
    return match.price_deviation > max_price_deviation or match.size_deviation > max_size_deviation


def find_best_match(
    resting: Order,
    candidates: Iterable[Order],
    max_price_deviation: float = DEFAULT_MAX_PRICE_DEVIATION,
    max_size_deviation: float = DEFAULT_MAX_SIZE_DEVIATION,
) -> Optional[Order]:
    """
    Closest same-side, same-kind candidate within both tolerance bands.

    Closeness is the unweighted sum of price and size deviation; on a tie the
    first candidate seen wins.
    """
    best: Optional[Order] = None
    best_total = float("inf")
    for candidate in candidates:
        if candidate.side != resting.side or candidate.kind != resting.kind:
            continue
        match = compare_orders(resting, candidate)
        if should_replace(match, max_price_deviation, max_size_deviation):
            continue
        if match.total_deviation < best_total:
            best_total = match.total_deviation
            best = candidate
    return best
