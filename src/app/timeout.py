"""Run a coroutine against a deadline without cancelling it."""
import asyncio
import logging
from typing import Any, Awaitable, Callable

from ..domain import OperationTimeout


logger = logging.getLogger("widget")

# Tasks that lost the race. Held here so they are not garbage collected
# while they finish their own side effects.
_abandoned: set[asyncio.Task] = set()


def _discard_result(task: asyncio.Task) -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned operation finished with error: {exc!r}")


async def run_with_timeout(
    operation: Callable[..., Awaitable[Any]],
    max_duration: float,
    *args: Any,
    **kwargs: Any
) -> Any:
    """
    Await ``operation(*args, **kwargs)`` for at most ``max_duration`` seconds.

    On timeout the operation keeps running in the background; whatever it
    writes to disk stays there, only its result is thrown away.

    Args:
        operation: Coroutine function to run
        max_duration: Time budget in seconds
        *args: Positional arguments for the operation
        **kwargs: Keyword arguments for the operation

    Returns:
        The operation's result

    Raises:
        OperationTimeout: If the deadline passes first
        Exception: Whatever the operation raises, if it finishes first
    """
    task = asyncio.ensure_future(operation(*args, **kwargs))
    done, _ = await asyncio.wait({task}, timeout=max_duration)

    if task in done:
        return task.result()

    _abandoned.add(task)
    task.add_done_callback(_discard_result)
    name = getattr(operation, "__qualname__", repr(operation))
    raise OperationTimeout(name, max_duration)


def pending_abandoned() -> int:
    """Number of timed-out operations still running."""
    return len(_abandoned)
