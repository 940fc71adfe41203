from __future__ import annotations

import time


def now_ms() -> int:
    """Current time as epoch milliseconds.

    Note: Wrapped so tests can patch/mock easier. All stored timestamps use this unit.
    """
    return int(time.time() * 1000)
