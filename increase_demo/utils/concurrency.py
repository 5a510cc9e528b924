"""
Fan-out helper for independent vendor calls.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, TypeVar

T = TypeVar("T")

MAX_WORKERS = 8


def run_parallel(*calls: Callable[[], T]) -> List[T]:
    """
    Run calls concurrently and return their results in call order.

    Waits for every call to finish before returning. If any call
    raised, the first failure (in call order) is re-raised after
    the others complete.
    """
    if not calls:
        return []
    with ThreadPoolExecutor(max_workers=min(len(calls), MAX_WORKERS)) as pool:
        futures = [pool.submit(call) for call in calls]
    return [future.result() for future in futures]
