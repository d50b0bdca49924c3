"""Runs blocking store calls off the event loop under a timeout."""

import asyncio
from typing import Any, Callable, TypeVar

from ..errors import StoreUnavailableError

T = TypeVar("T")


async def run_store_call(func: Callable[..., T], *args: Any, timeout: float) -> T:
    """
    Await a blocking store method in a worker thread.

    Raises:
        StoreUnavailableError: If the call fails or exceeds ``timeout``
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout)
    except asyncio.TimeoutError as e:
        operation = getattr(func, "__name__", "store call")
        raise StoreUnavailableError(
            f"{operation} timed out after {timeout}s",
            operation=operation
        ) from e
