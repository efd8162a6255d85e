"""
Offload blocking calls (disk writes for uploads) from the event loop.
"""

import asyncio
import functools
from typing import Any, Callable, TypeVar

R = TypeVar("R")


async def run_blocking(fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Await fn(*args, **kwargs) on the loop's default executor."""
    call = functools.partial(fn, *args, **kwargs)
    return await asyncio.get_running_loop().run_in_executor(None, call)
