"""
Error handling helpers for optional side work.

Persistence of interviews, answers and reports is best effort: a database
hiccup must not fail a request whose AI work already succeeded (and was
already paid for). These helpers log such failures and hand back a fallback.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


async def best_effort(
    func: Callable[..., Awaitable[T]],
    *args,
    operation_name: str = "operation",
    logger: Optional[logging.Logger] = None,
    fallback: Any = None,
    **kwargs,
) -> T:
    """
    Await a coroutine function, logging and returning fallback on failure.

    Usage:
        interview_id = await best_effort(
            run_in_threadpool,
            repo.create,
            record,
            operation_name="Persist interview",
            logger=logger,
        )

    Args:
        func: Coroutine function to await
        *args: Positional arguments for func
        operation_name: Name for logging
        logger: Logger instance (uses module logger if None)
        fallback: Value to return on failure
        **kwargs: Keyword arguments for func
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    try:
        return await func(*args, **kwargs)
    except Exception as e:
        logger.warning(f"[{operation_name}] Failed: {e}")
        return fallback
