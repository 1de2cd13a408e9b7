"""
Fire-and-forget background tasks.

The event loop only keeps weak references to tasks, so a task nobody holds
can be garbage collected mid-flight. Dispatched tasks are parked in a
module-level set until they finish. The task is not tied to the request that
spawned it: cancelling the request does not cancel the task.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

from shared.logging import get_logger

log = get_logger(__name__)

_pending: set[asyncio.Task] = set()


def fire_and_forget(coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task:
    """Schedule *coro* on the running loop; errors are logged and swallowed."""
    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        log.warning("background_task_cancelled", task=task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        log.error(
            "background_task_failed",
            task=task.get_name(),
            error=str(exc),
            error_type=type(exc).__name__,
        )


async def drain(timeout: float = 5.0) -> None:
    """Wait for in-flight tasks, e.g. on shutdown. Used by tests as well."""
    if not _pending:
        return
    await asyncio.wait(set(_pending), timeout=timeout)
