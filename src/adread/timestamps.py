from __future__ import annotations

import time
from typing import NamedTuple, Optional


class Timestamp(NamedTuple):
    seconds: int
    microseconds: int


def timestamp(ns: Optional[int] = None) -> Timestamp:
    """Truncate an epoch time in nanoseconds to microseconds and split it."""
    if ns is None:
        ns = time.time_ns()
    usecs = int(ns) // 1000
    return Timestamp(*divmod(usecs, 1_000_000))
