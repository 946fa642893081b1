"""
Dispatcher: admits queued jobs under two gates and runs each as its own task.

A job starts only when the concurrency gate has a free slot AND the rate
window has room. Jobs that cannot start stay queued. A job whose handler
raises is rescheduled with exponential backoff until the attempt ceiling,
then failed permanently and handed to on_exhausted. Running jobs are never
cancelled; stop() waits for them.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from swapflow_core.dispatch.admission import Clock, ConcurrencyGate, SlidingWindowRateLimiter
from swapflow_core.dispatch.jobs import Job, JobQueue
from swapflow_core.dispatch.retry import RetryPolicy

logger = logging.getLogger(__name__)

JobHandler = Callable[[Job], Awaitable[None]]
RetryHook = Callable[[Job, Exception, float], Awaitable[None]]
ExhaustedHook = Callable[[Job, Exception], Awaitable[None]]


class Dispatcher:
    """
    Worker pool over a JobQueue.

    handler(job) runs the order lifecycle. on_retry(job, exc, delay) is awaited
    before a failed attempt is rescheduled; on_exhausted(job, exc) after the
    last attempt fails.
    """

    def __init__(
        self,
        queue: JobQueue,
        handler: JobHandler,
        *,
        concurrency: int = 10,
        rate_limit: int = 100,
        rate_window: float = 60.0,
        retry_policy: RetryPolicy | None = None,
        on_retry: RetryHook | None = None,
        on_exhausted: ExhaustedHook | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.queue = queue
        self.handler = handler
        self.gate = ConcurrencyGate(concurrency)
        self.limiter = SlidingWindowRateLimiter(rate_limit, rate_window, clock=clock)
        self.retry_policy = retry_policy or RetryPolicy()
        self.on_retry = on_retry
        self.on_exhausted = on_exhausted
        self._tasks: set[asyncio.Task[None]] = set()
        self._loop_task: asyncio.Task[None] | None = None
        self._running = False
        self._idle = asyncio.Event()
        self.started = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        return self.gate.in_flight

    def start(self) -> None:
        """Start the admission loop on the running event loop."""
        if self._running:
            return
        self._running = True
        self._loop_task = asyncio.create_task(self._run(), name="swapflow-dispatcher")
        logger.info(
            "Dispatcher started: concurrency=%d, rate=%d/%.0fs, max_attempts=%d",
            self.gate.limit,
            self.limiter.max_events,
            self.limiter.window,
            self.retry_policy.max_attempts,
        )

    async def stop(self, *, drain: bool = False) -> None:
        """
        Stop admitting jobs and wait for running ones to finish.
        With drain=True, first wait until every queued and delayed job is done.
        """
        if drain and self._running:
            await self.join()
        self._running = False
        self.queue.notify()
        if self._loop_task is not None:
            await self._loop_task
            self._loop_task = None
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        leftover = self.queue.outstanding
        if leftover:
            logger.warning("Dispatcher stopped with %d job(s) still queued", leftover)
        else:
            logger.info("Dispatcher stopped")

    async def join(self) -> None:
        """Wait until no job is waiting, delayed or active. Requires a started dispatcher."""
        while self.queue.outstanding:
            self._idle.clear()
            await self._idle.wait()

    def stats(self) -> dict[str, int]:
        out = self.queue.counts()
        out.update(
            in_flight=self.gate.in_flight,
            peak_in_flight=self.gate.peak,
            started=self.started,
            rate_window_used=self.limiter.in_window,
        )
        return out

    async def _run(self) -> None:
        while self._running:
            self._admit()
            await self.queue.wait_for_work(self._next_wakeup())

    def _admit(self) -> None:
        while self.queue.peek_ready():
            # Concurrency first, so a job blocked on slots never burns a rate slot.
            if self.gate.available <= 0:
                return
            if not self.limiter.try_acquire():
                return
            self.gate.try_acquire()
            job = self.queue.pop_ready()
            if job is None:
                self.gate.release()
                return
            self.started += 1
            task = asyncio.create_task(self._execute(job), name=f"order-{job.job_id}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def _next_wakeup(self) -> float | None:
        """Timeout for the next sleep: earliest retry due time or rate-window slot."""
        candidates: list[float] = []
        due = self.queue.next_due_in()
        if due is not None:
            candidates.append(due)
        if self.queue.peek_ready() and self.gate.available > 0:
            candidates.append(self.limiter.retry_after())
        return min(candidates) if candidates else None

    async def _execute(self, job: Job) -> None:
        logger.debug("Job %s: attempt %d started", job.job_id, job.attempt)
        try:
            await self.handler(job)
        except Exception as exc:  # noqa: BLE001
            await self._handle_failure(job, exc)
        else:
            self.queue.complete(job)
        finally:
            self.gate.release()
            self.queue.notify()
            if not self.queue.outstanding:
                self._idle.set()

    async def _handle_failure(self, job: Job, exc: Exception) -> None:
        job.last_error = str(exc) or type(exc).__name__
        if self.retry_policy.should_retry(job.attempt):
            delay = self.retry_policy.delay_for(job.attempt)
            logger.warning(
                "Job %s: attempt %d/%d failed (%s); retrying in %.2fs",
                job.job_id,
                job.attempt,
                self.retry_policy.max_attempts,
                job.last_error,
                delay,
            )
            if self.on_retry is not None:
                await self._call_hook(self.on_retry, job, exc, delay)
            job.attempt += 1
            self.queue.schedule_retry(job, delay)
            return

        logger.error(
            "Job %s: failed permanently after %d attempt(s): %s", job.job_id, job.attempt, job.last_error
        )
        try:
            if self.on_exhausted is not None:
                await self._call_hook(self.on_exhausted, job, exc)
        finally:
            self.queue.fail(job)

    async def _call_hook(self, hook: Callable[..., Awaitable[None]], *args: object) -> None:
        try:
            await hook(*args)
        except Exception:  # noqa: BLE001
            logger.exception("Job hook %r raised", hook)
