"""
flashsim - synthetic two-sided activity for venue trading pairs.

Runs one quoting (maker) bot and one activity (taker) bot per configured pair.
"""

__version__ = "0.3.0"
