"""
Submit-and-stream example: one swap order from submission to confirmation.

Shows: OrderService lifecycle, submit() returning immediately, a live
Subscription printing each status message, then the stored record and the
decision log for the order. Latencies are the simulator defaults (~3 s).
"""

from __future__ import annotations

import asyncio
import json
import logging

from swapflow_core import EngineSettings, OrderService, ValidationError
from swapflow_core.log import setup_logging


async def main() -> None:
    settings = EngineSettings.from_env()
    async with OrderService(settings) as service:
        receipt = await service.submit({"tokenIn": "USDC", "tokenOut": "SOL", "amount": 100})
        print(f"Accepted: {json.dumps(receipt.to_message())}")

        async with service.subscribe(receipt.order_id) as stream:
            async for event in stream:
                print(f"  {json.dumps(event.to_message())}")

        order = await service.get_order(receipt.order_id)
        print(f"Stored: status={order.status.value}, venue={order.chosen_venue}, tx={order.transaction_id}")
        for entry in await service.get_decision_log(receipt.order_id):
            print(f"  [{entry.event}] {entry.payload}")

        print("\n--- Malformed submission (missing tokenOut) ---")
        try:
            await service.submit({"tokenIn": "USDC", "amount": 100})
        except ValidationError as e:
            print(f"Rejected: {e}")


if __name__ == "__main__":
    setup_logging(logging.WARNING)
    asyncio.run(main())
