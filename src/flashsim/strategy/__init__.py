"""
Strategy package.

- QuoteLadderGenerator: the maker's desired ladder around a mid price
- choose_strategy / TakerOrderSynthesizer: the taker's per-cycle decision
"""

from flashsim.strategy.ladder import LadderResult, QuoteLadderGenerator, SpreadModel
from flashsim.strategy.taker_strategy import (
    PriceHistory,
    Strategy,
    TakerOrderSynthesizer,
    choose_strategy,
)

__all__ = [
    "LadderResult",
    "PriceHistory",
    "QuoteLadderGenerator",
    "SpreadModel",
    "Strategy",
    "TakerOrderSynthesizer",
    "choose_strategy",
]
