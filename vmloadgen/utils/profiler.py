"""
Profiling utilities for the load generator.

Provides a context manager that measures one block of work, typically a single
tier cycle:
- Wall-clock time (perf_counter)
- CPU usage of the process (psutil, best-effort)
- Resident memory at the end of the block (psutil)

Usage:
    from vmloadgen.utils.profiler import profile_block

    with profile_block("fast-cycle") as stats:
        await worker.run_cycle()

    print(stats.duration_ms, stats.cpu_percent)
"""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass, field
from typing import Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)

    @property
    def duration_ms(self) -> float:
        return self.duration_seconds * 1000.0


@contextlib.contextmanager
def profile_block(label: str, sample_resources: bool = True) -> Generator[ProfileStats, None, None]:
    """
    Context manager to profile a block of code.

    The block may contain ``await`` expressions when used inside a coroutine;
    the measured duration then includes time spent waiting on I/O.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    sample_resources : bool
        Whether to capture CPU percent and RSS via psutil. Disable for hot
        loops where the extra syscalls would skew timings.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process() if sample_resources else None

    # CPU percent needs a priming call
    if process:
        process.cpu_percent(interval=None)

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts

        if process:
            stats.cpu_percent = process.cpu_percent(interval=None)
            stats.rss_bytes = process.memory_info().rss


__all__ = ["ProfileStats", "profile_block"]
