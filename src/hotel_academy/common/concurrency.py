from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence, Tuple, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def run_all_settled(calls: Sequence[Tuple[str, Callable[[], T]]], *, default: T) -> List[T]:
    """Run the named calls in parallel; results keep input order.

    A call that raises is logged under its name and contributes `default`.
    """
    if not calls:
        return []

    with ThreadPoolExecutor(max_workers=len(calls)) as ex:
        futures = [(name, ex.submit(fn)) for name, fn in calls]

    results: List[T] = []
    for name, future in futures:
        try:
            results.append(future.result())
        except Exception:
            logger.exception("%s failed", name)
            results.append(default)
    return results
