"""
Worker offload for blocking printer I/O.

Every bridge operation runs its whole body (resolve/connect/open, write,
flush, close) on a dedicated worker thread so the event loop that received
the command is never blocked. The caller awaits the result.
"""

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from printer_bridge.core.logging import get_logger
from printer_bridge.core.utils import BridgeError, TaskFailure

logger = get_logger()

T = TypeVar("T")


async def run_blocking(operation: str, func: Callable[..., T], *args: Any) -> T:
    """
    Run a blocking callable on a worker thread and await its result.

    Args:
        operation: Human readable operation name used in TaskFailure messages
            (e.g. "Print", "List ports").
        func: The blocking callable. It must own all its resources.
        *args: Positional arguments passed to func.

    Returns:
        The value returned by func.

    Raises:
        BridgeError: Domain errors raised by func propagate unchanged.
        TaskFailure: If func fails with any other exception.

    Note:
        Cancelling the awaiting coroutine does not stop the worker thread;
        it runs until func returns or its own I/O timeouts fire.
    """
    logger.debug(f"Dispatching {operation.lower()} task to worker thread")
    try:
        return await asyncio.to_thread(func, *args)
    except BridgeError:
        raise
    except Exception as e:
        logger.error(f"{operation} task failed: {e!r}")
        raise TaskFailure(f"{operation} task failed: {e}") from e
