"""
Execution client contract used by the bots.

Implementations authenticate against the venue, submit single orders and
batch-cancel by venue id. A failed call raises; callers decide whether the
failure is fatal (authentication) or per-call (submit/cancel).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from flashsim.core.models import OrderKind, OrderSide


@dataclass
class SubmitResult:
    """Venue acknowledgement of a submitted order."""
    order_ids: List[str] = field(default_factory=list)
    raw: Optional[dict] = None

    @property
    def first_id(self) -> Optional[str]:
        return self.order_ids[0] if self.order_ids else None


@runtime_checkable
class ExecutionClient(Protocol):
    async def initialize(self, credential: str) -> None:
        """Authenticate. Raises AuthenticationError on failure."""
        ...

    def is_authenticated(self) -> bool:
        ...

    async def submit_order(
        self,
        side: OrderSide,
        base_asset: str,
        quote_asset: str,
        quantity: float,
        price: Optional[float],
        kind: OrderKind,
        stp_mode: str,
    ) -> SubmitResult:
        ...

    async def cancel_orders(self, order_ids: Sequence[str]) -> None:
        """Cancel a batch. Raises ExecutionError if the batch is not accepted."""
        ...

    async def close(self) -> None:
        ...
