"""
Brotherhood KOS - Async Utilities
=================================

Utilities for running async work with proper error logging.

Usage:
    from brotherhood_kos.utils.async_utils import create_safe_task

    # Instead of:
    asyncio.create_task(notifier.notify("added", entry))

    # Use:
    create_safe_task(notifier.notify("added", entry), "Telegram Notify")
"""

import asyncio
from typing import Any, Coroutine, List, Optional, Set, Tuple

from brotherhood_kos.core.logger import logger


# Strong references so fire-and-forget tasks are not garbage collected
_background_tasks: Set[asyncio.Task] = set()


async def gather_with_logging(
    *operations: Tuple[str, Coroutine[Any, Any, Any]],
    context: Optional[str] = None,
) -> List[Any]:
    """
    Run multiple async operations concurrently with error logging.

    Args:
        *operations: Tuples of (operation_name, coroutine).
        context: Optional context string for error logs.

    Returns:
        List of results (including exceptions as values, not raised).
    """
    names = [name for name, _ in operations]
    coros = [coro for _, coro in operations]

    results = await asyncio.gather(*coros, return_exceptions=True)

    for i, result in enumerate(results):
        if isinstance(result, Exception):
            error_details = [
                ("Operation", names[i]),
                ("Error Type", type(result).__name__),
                ("Error", str(result)[:100]),
            ]
            if context:
                error_details.insert(0, ("Context", context))

            logger.warning("Async Operation Failed", error_details)

    return results


# =============================================================================
# Safe Background Tasks
# =============================================================================

def create_safe_task(
    coro: Coroutine[Any, Any, Any],
    name: str = "Background Task",
) -> asyncio.Task:
    """
    Create a background task with automatic error logging.

    Args:
        coro: The coroutine to run as a background task.
        name: Name for logging purposes.

    Returns:
        The created asyncio.Task.
    """
    async def wrapped():
        try:
            await coro
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Background Task Failed", [
                ("Task", name),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:200]),
            ])

    task = asyncio.create_task(wrapped(), name=name)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "gather_with_logging",
    "create_safe_task",
]
