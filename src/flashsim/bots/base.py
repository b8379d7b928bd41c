"""
Agent contract shared by the maker and taker bots.

Bots own their Scheduler by composition; nothing is inherited.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Bot(Protocol):
    agent: str

    async def initialize_client(self) -> None:
        """Authenticate the bot's execution client. Raises AuthenticationError."""
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    async def run_cycle(self) -> Any:
        ...

    @property
    def is_running(self) -> bool:
        ...
