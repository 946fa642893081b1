"""
Burst example: submit more orders than the worker pool holds, then report.

Runs 25 orders against 10 workers with shortened simulator latencies and a
raised failure rate so retries show up, then prints the routing summary.
"""

from __future__ import annotations

import asyncio
import logging

from swapflow_core import EngineSettings, OrderService
from swapflow_core.log import setup_logging
from reporting import print_report


async def main() -> None:
    settings = EngineSettings(
        quote_latency_min=0.02,
        quote_latency_max=0.05,
        settlement_latency_min=0.1,
        settlement_latency_max=0.2,
        failure_rate=0.15,
        backoff_base=0.1,
    )
    async with OrderService(settings) as service:
        for i in range(25):
            await service.submit({"tokenIn": "USDC", "tokenOut": "SOL", "amount": 10 + i})
        await service.wait_idle()
        print(f"Dispatcher: {service.stats()}")
        orders = await service.list_orders()
        entries = await service.get_decision_log()
        print_report(orders, entries)


if __name__ == "__main__":
    setup_logging(logging.INFO)
    asyncio.run(main())
