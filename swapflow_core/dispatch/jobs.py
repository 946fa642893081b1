"""
Job queue: pending jobs in FIFO order plus delayed retries.

A job id (the order id) can be held only once, so one order is never queued
or run twice at the same time. Waiters are woken through an asyncio.Event.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum

from swapflow_core.dispatch.admission import Clock, DelayQueue
from swapflow_core.order import Order


class JobState(Enum):
    WAITING = "waiting"
    DELAYED = "delayed"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Job:
    """Unit of work: process one order. attempt is 1-based."""

    job_id: str
    order: Order
    attempt: int = 1
    state: JobState = JobState.WAITING
    last_error: str | None = None

    @classmethod
    def for_order(cls, order: Order) -> Job:
        return cls(job_id=order.order_id, order=order)


class JobQueue:
    """Holds waiting, delayed and active jobs. Completed/failed jobs are forgotten."""

    def __init__(self, *, clock: Clock = time.monotonic) -> None:
        self._ready: deque[Job] = deque()
        self._delayed: DelayQueue[Job] = DelayQueue(clock=clock)
        self._held: dict[str, Job] = {}
        self._wakeup = asyncio.Event()
        self.completed = 0
        self.failed = 0

    def enqueue(self, job: Job) -> bool:
        """Add a new job. Returns False (and ignores it) if its id is already held."""
        if job.job_id in self._held:
            return False
        job.state = JobState.WAITING
        self._held[job.job_id] = job
        self._ready.append(job)
        self.notify()
        return True

    def schedule_retry(self, job: Job, delay: float) -> None:
        """Park an active job until `delay` seconds have passed."""
        if self._held.get(job.job_id) is not job:
            raise KeyError(f"Job {job.job_id} is not held by this queue")
        job.state = JobState.DELAYED
        self._delayed.push(job, delay)
        self.notify()

    def promote_due(self) -> int:
        """Move retries whose delay elapsed to the ready line. Returns how many moved."""
        due = self._delayed.pop_due()
        for job in due:
            job.state = JobState.WAITING
            self._ready.append(job)
        return len(due)

    def pop_ready(self) -> Job | None:
        self.promote_due()
        if not self._ready:
            return None
        job = self._ready.popleft()
        job.state = JobState.ACTIVE
        return job

    def peek_ready(self) -> bool:
        self.promote_due()
        return bool(self._ready)

    def complete(self, job: Job) -> None:
        job.state = JobState.COMPLETED
        self._held.pop(job.job_id, None)
        self.completed += 1
        self.notify()

    def fail(self, job: Job) -> None:
        """Permanently fail a job; it is dropped from the queue and never retried."""
        job.state = JobState.FAILED
        self._held.pop(job.job_id, None)
        self.failed += 1
        self.notify()

    def next_due_in(self) -> float | None:
        return self._delayed.next_due_in()

    def counts(self) -> dict[str, int]:
        active = sum(1 for j in self._held.values() if j.state is JobState.ACTIVE)
        return {
            "waiting": len(self._ready),
            "delayed": len(self._delayed),
            "active": active,
            "completed": self.completed,
            "failed": self.failed,
        }

    @property
    def outstanding(self) -> int:
        """Jobs not yet completed or failed (waiting, delayed or active)."""
        return len(self._held)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._held

    def notify(self) -> None:
        self._wakeup.set()

    async def wait_for_work(self, timeout: float | None = None) -> None:
        """Sleep until notify() is called or timeout elapses."""
        try:
            if timeout is None:
                await self._wakeup.wait()
            else:
                await asyncio.wait_for(self._wakeup.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        finally:
            self._wakeup.clear()
