"""
Venue abstraction layer.

VenueAdapter ABC: get_quote, execute_swap. SimulatedVenue implements it for
the two simulated liquidity sources; a real DEX client would implement the
same interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from swapflow_core.execution.types import Quote, SwapResult

if TYPE_CHECKING:
    from swapflow_core.order import Order


class VenueAdapter(ABC):
    """A liquidity venue the router can quote and settle against."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable venue identifier (e.g. "raydium")."""
        ...

    @abstractmethod
    async def get_quote(self, token_in: str, token_out: str, amount: float) -> Quote:
        """
        Price a prospective swap. Raises on failure; the router turns any
        failure into RoutingError.
        """
        ...

    @abstractmethod
    async def execute_swap(self, order: "Order") -> SwapResult:
        """
        Settle the order on this venue. Either fully succeeds or raises
        ExecutionError; there is no partial settlement.
        """
        ...
