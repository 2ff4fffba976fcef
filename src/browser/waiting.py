"""
One reusable wait primitive.

Every bounded wait in the walker (element appearance, element removal,
list settling) goes through wait_until so timeouts behave the same way
everywhere.
"""

import asyncio
import inspect
import time
from typing import Awaitable, Callable, Optional, TypeVar, Union

T = TypeVar("T")

Predicate = Callable[[], Union[Optional[T], Awaitable[Optional[T]]]]


async def wait_until(
    predicate: Predicate,
    timeout: float,
    interval: float = 0.1,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Optional[T]:
    """
    Poll a predicate until it returns a truthy value or the timeout expires.

    The predicate may be a plain or an async callable. It is always
    evaluated at least once, even with a zero timeout.

    Args:
        predicate: Callable returning a truthy value once the condition holds
        timeout: Maximum seconds to wait
        interval: Seconds between evaluations
        sleep: Awaitable sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        The first truthy predicate result, or None on timeout

    Example:
        >>> node = await wait_until(lambda: scope.query("#tools"), timeout=3.0)
        >>> if node is None:
        ...     raise ElementNotFound("#tools", 3000)
    """
    deadline = clock() + timeout
    while True:
        result = predicate()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return result
        remaining = deadline - clock()
        if remaining <= 0:
            return None
        await sleep(min(interval, remaining))
