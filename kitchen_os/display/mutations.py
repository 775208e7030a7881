"""
Per-item mutation queue

At most one request per item is in flight. Later requests for the same item
wait their turn in submission order; requests for different items run
independently.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Hashable, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class MutationQueue:

    def __init__(self):
        self._tails: Dict[Hashable, asyncio.Task] = {}

    def submit(self, key: Hashable, operation: Callable[[], Awaitable[T]]) -> "asyncio.Task[T]":
        """Run ``operation`` after every earlier operation for ``key``"""
        previous = self._tails.get(key)
        task = asyncio.ensure_future(self._run_after(previous, operation))
        self._tails[key] = task
        task.add_done_callback(lambda done, key=key: self._forget(key, done))
        if previous is not None:
            logger.debug(f"Queued mutation for {key} behind one in flight")
        return task

    @staticmethod
    async def _run_after(previous, operation):
        if previous is not None:
            # Only the ordering matters here; the earlier caller sees its own outcome
            await asyncio.wait([previous])
        return await operation()

    def _forget(self, key: Hashable, task: asyncio.Task):
        if self._tails.get(key) is task:
            del self._tails[key]

    def __len__(self) -> int:
        return len(self._tails)

    async def drain(self):
        """Wait until every submitted operation has finished"""
        while self._tails:
            await asyncio.gather(*self._tails.values(), return_exceptions=True)
