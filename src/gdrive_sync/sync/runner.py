"""Bounded-concurrency execution of upload tasks."""

import asyncio
import logging
from typing import Awaitable, Callable, Set

from .planner import UploadTask

logger = logging.getLogger(__name__)

Producer = Callable[[asyncio.Queue], Awaitable[None]]

_DONE = object()


class ConcurrencyRunner:
    """Execute queued tasks with at most ``max_concurrency`` in flight.

    A task that raises is logged and counted in ``failed`` without affecting
    its siblings or the producer still walking the tree. ``SyncManager`` uploads
    report their own failures in ``SyncStats`` and do not raise.
    """

    def __init__(self, max_concurrency: int = 4):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.in_flight = 0
        self.peak_in_flight = 0
        self.completed = 0
        self.failed = 0

    async def _run_task(self, task: UploadTask, slots: asyncio.Semaphore):
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await task()
            self.completed += 1
        except Exception as e:
            self.failed += 1
            logger.error(f"Task for {task.local_path} failed: {e}")
        finally:
            self.in_flight -= 1
            slots.release()

    @staticmethod
    async def _produce(producer: Producer, queue: asyncio.Queue):
        try:
            await producer(queue)
        finally:
            await queue.put(_DONE)

    async def drain(self, producer: Producer):
        """Run ``producer`` and every task it queues to completion.

        Args:
            producer: Coroutine function putting :class:`UploadTask` items on the queue it receives

        Raises:
            Exception: Whatever the producer raised, after in-flight tasks finish
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_concurrency)
        slots = asyncio.Semaphore(self.max_concurrency)
        running: Set[asyncio.Task] = set()
        producer_task = asyncio.create_task(self._produce(producer, queue))

        try:
            while True:
                task = await queue.get()
                if task is _DONE:
                    break
                await slots.acquire()
                job = asyncio.create_task(self._run_task(task, slots))
                running.add(job)
                job.add_done_callback(running.discard)
            await producer_task
        finally:
            if running:
                await asyncio.gather(*running)
