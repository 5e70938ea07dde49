"""Maximum-wait bound for pending operations.

The bound is a race, not a cancellation: when the deadline elapses first the
underlying task is left running and its eventual result is discarded.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Set, TypeVar

DEFAULT_TIMEOUT_MS = 60_000

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Strong references to tasks that outlived their deadline.
_abandoned: Set["asyncio.Future[object]"] = set()


class DeadlineExceeded(TimeoutError):
    def __init__(self, label: str, timeout_ms: float) -> None:
        shown = int(timeout_ms) if float(timeout_ms).is_integer() else timeout_ms
        super().__init__(f"{label} timed out after {shown} ms")
        self.label = label
        self.timeout_ms = timeout_ms


def _discard(task: "asyncio.Future[object]") -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned task finished with error: %s", exc)
    else:
        logger.debug("Abandoned task finished after its deadline")


def _abandon(task: "asyncio.Future[object]") -> None:
    _abandoned.add(task)
    task.add_done_callback(_discard)


async def with_deadline(
    operation: Awaitable[T],
    timeout_ms: float = DEFAULT_TIMEOUT_MS,
    label: str = "request",
) -> T:
    if timeout_ms < 0:
        raise ValueError("timeout_ms must be non-negative")
    task = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        _abandon(task)
        raise
    if task in done:
        return task.result()
    _abandon(task)
    raise DeadlineExceeded(label, timeout_ms)


def abandoned_count() -> int:
    return len(_abandoned)
