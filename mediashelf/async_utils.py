"""
Utilities for asynchronous code.
"""


import asyncio
from concurrent import futures
from functools import cache
from typing import AsyncIterator, Iterable, TypeVar

from loguru import logger

IterType = TypeVar("IterType")


@cache
def get_process_pool() -> futures.ProcessPoolExecutor:
    logger.debug("Creating process pool.")
    return futures.ProcessPoolExecutor()


async def paced(
    source: Iterable[IterType], *, delay_seconds: float
) -> AsyncIterator[IterType]:
    """
    Iterates over a synchronous iterable, waiting for a fixed delay between
    consecutive items. There is no delay before the first item or after the
    last one.

    The delay starts once the consumer asks for the next item, so any work
    done by the consumer with the previous item is not counted against it.

    Args:
        source: The iterable to pace.
        delay_seconds: How long to wait between items.

    Yields:
        The items from `source`, in order.

    """
    first = True
    for item in source:
        if not first and delay_seconds > 0:
            logger.debug("Waiting {} s before the next item.", delay_seconds)
            await asyncio.sleep(delay_seconds)
        first = False

        yield item
