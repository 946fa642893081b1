"""
Job admission: queue, concurrency/rate gates, retry policy, dispatcher.
"""

from swapflow_core.dispatch.admission import ConcurrencyGate, DelayQueue, SlidingWindowRateLimiter
from swapflow_core.dispatch.dispatcher import Dispatcher
from swapflow_core.dispatch.jobs import Job, JobQueue, JobState
from swapflow_core.dispatch.retry import RetryPolicy

__all__ = [
    "ConcurrencyGate",
    "DelayQueue",
    "SlidingWindowRateLimiter",
    "Dispatcher",
    "Job",
    "JobQueue",
    "JobState",
    "RetryPolicy",
]
