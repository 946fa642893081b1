"""
Execution layer: venue abstraction, simulated venues, routing, lifecycle.

VenueAdapter interface; simulated Raydium/Meteora venues; RoutingEngine picks
the best quote; OrderLifecycle drives an order to confirmed or failed.
"""

from swapflow_core.execution.lifecycle import OrderLifecycle
from swapflow_core.execution.router import RoutingEngine, select_best
from swapflow_core.execution.simulated import METEORA, RAYDIUM, SimulatedVenue, VenueProfile, default_venues
from swapflow_core.execution.types import Quote, RoutingDecision, SwapResult
from swapflow_core.execution.venue import VenueAdapter

__all__ = [
    "OrderLifecycle",
    "RoutingEngine",
    "select_best",
    "METEORA",
    "RAYDIUM",
    "SimulatedVenue",
    "VenueProfile",
    "default_venues",
    "Quote",
    "RoutingDecision",
    "SwapResult",
    "VenueAdapter",
]
