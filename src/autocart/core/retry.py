"""
Bounded retry and bounded duration helpers.

Every wait here is a cooperative poll on the event loop; nothing is
interrupted preemptively except through asyncio cancellation in
with_timeout.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from autocart.core.errors import ElementNotFoundError, OperationTimeoutError
from autocart.dom.node import DomNode

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRY_ATTEMPTS = 3
RETRY_DELAY = 2.0


async def with_retry(operation: Callable[[], Awaitable[T]], retries: int = RETRY_ATTEMPTS,
                     delay: float = RETRY_DELAY, operation_name: str = 'operation',
                     silent: bool = False) -> T:
    """
    Run `operation` up to `retries` times, sleeping `delay` between attempts.

    The last error is re-raised once every attempt has failed.
    """
    if retries < 1:
        raise ValueError("retries must be at least 1")

    last_error: Optional[BaseException] = None
    for attempt in range(1, retries + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            if attempt < retries:
                if not silent:
                    logger.warning(f"RETRY: {operation_name} failed: {e}, retrying in {delay:g}s ({attempt}/{retries})")
                await asyncio.sleep(delay)

    if not silent:
        logger.error(f"RETRY: {operation_name} failed after {retries} attempts: {last_error}")
    raise last_error


async def with_timeout(operation: Callable[[], Awaitable[T]], timeout: float = 30.0,
                       operation_name: str = 'operation') -> T:
    try:
        return await asyncio.wait_for(operation(), timeout=timeout)
    except asyncio.TimeoutError:
        raise OperationTimeoutError(operation_name, timeout) from None


async def poll_until(probe: Callable[[], Awaitable[Any]], timeout: float, poll_interval: float = 0.1) -> Any:
    """Call `probe` until it returns something truthy or `timeout` elapses; probes at least once."""
    loop = asyncio.get_running_loop()
    started = loop.time()
    while True:
        result = await probe()
        if result:
            return result
        if loop.time() - started >= timeout:
            return None
        await asyncio.sleep(poll_interval)


async def wait_for_element(page, predicate: Callable[[DomNode], bool], description: str,
                           timeout: float = 5.0, retries: int = RETRY_ATTEMPTS,
                           retry_delay: float = RETRY_DELAY, poll_interval: float = 0.1,
                           silent: bool = False) -> DomNode:
    """Wait for the first node matching `predicate` on a fresh snapshot."""

    async def probe():
        root = await page.snapshot()
        return root.find_first(predicate)

    return await _wait_with_retries(probe, description, timeout, retries, retry_delay, poll_interval, silent)


async def wait_for_elements(page, predicate: Callable[[DomNode], bool], description: str,
                            timeout: float = 5.0, retries: int = RETRY_ATTEMPTS,
                            retry_delay: float = RETRY_DELAY, poll_interval: float = 0.1,
                            silent: bool = False) -> List[DomNode]:
    """Wait until at least one node matches `predicate`; returns all matches."""

    async def probe():
        root = await page.snapshot()
        return root.find_all(predicate)

    return await _wait_with_retries(probe, description, timeout, retries, retry_delay, poll_interval, silent)


async def _wait_with_retries(probe, description, timeout, retries, retry_delay, poll_interval, silent):
    async def attempt():
        found = await poll_until(probe, timeout, poll_interval)
        if not found:
            raise ElementNotFoundError(description, attempts=retries)
        return found

    return await with_retry(attempt, retries=retries, delay=retry_delay,
                            operation_name=f"wait for {description}", silent=silent)
