"""
Workers package for the load generator.

Re-exports the worker protocol, the stats container and the tier worker so
downstream code can import from `vmloadgen.workers` directly.
"""

from vmloadgen.workers.abstract import PayloadWriter, TierStats
from vmloadgen.workers.tier_worker import TierWorker, build_record, chunk_items

__all__ = [
    "PayloadWriter",
    "TierStats",
    "TierWorker",
    "build_record",
    "chunk_items",
]
