"""
Utility helpers.
"""

from __future__ import annotations

import random
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


def now_ms() -> int:
    return int(time.time() * 1000)


def random_between(low: float, high: float, rng: Optional[random.Random] = None) -> float:
    """Uniform draw in [low, high)."""
    r = rng or random
    return r.random() * (high - low) + low


def apply_variance(base: float, variance: float, rng: Optional[random.Random] = None) -> float:
    """
    Scale ``base`` by a uniform factor in [1 - variance, 1 + variance).

    Used for interval jitter and size randomization alike.
    """
    return base * (1 + random_between(-variance, variance, rng))


def round_to_decimals(value: float, decimals: int) -> float:
    """
    Half-up rounding through Decimal.

    ``round()`` uses banker's rounding on the binary float, which makes
    ladder prices drift by one unit in the last place between cycles.
    """
    quant = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP))


def coin_flip(rng: Optional[random.Random] = None) -> bool:
    r = rng or random
    return r.random() < 0.5
