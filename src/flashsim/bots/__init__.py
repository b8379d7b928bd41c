"""
Bots package.

- MarketMakerBot: quoting agent, one per pair
- MarketTakerBot: activity agent, one per pair
"""

from flashsim.bots.base import Bot
from flashsim.bots.maker_bot import MarketMakerBot
from flashsim.bots.taker_bot import MarketTakerBot

__all__ = ["Bot", "MarketMakerBot", "MarketTakerBot"]
