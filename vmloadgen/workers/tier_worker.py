"""
Tier worker: the per-tier send loop.

A worker owns a fixed slice of metric items. Each cycle it splits them into
chunks, builds one line-protocol record per chunk (regenerating every value)
and submits all chunks concurrently, waiting for every submission to resolve.
It then sleeps for the tier delay and repeats until the stop event is set.
"""

from __future__ import annotations

import asyncio
import random
import time
from typing import Callable, List, Optional, Sequence

from vmloadgen.config import get_settings
from vmloadgen.domain.models import LineProtocolRecord, MetricItem, Tier
from vmloadgen.utils.logging import get_logger
from vmloadgen.utils.profiler import profile_block
from vmloadgen.workers.abstract import PayloadWriter, TierStats

log = get_logger(__name__)


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def chunk_items(items: Sequence[MetricItem], chunk_size: int) -> List[List[MetricItem]]:
    """
    Split ``items`` into contiguous chunks of at most ``chunk_size``.

    The last chunk may be smaller; empty input yields no chunks.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
    return [list(items[start : start + chunk_size]) for start in range(0, len(items), chunk_size)]


def build_record(
    chunk: Sequence[MetricItem],
    measurement: str,
    rng: random.Random,
    clock: Callable[[], int] = now_ms,
) -> LineProtocolRecord:
    """
    Read every item in ``chunk`` and stamp the record.

    The timestamp is taken once, after the values are generated, so all
    fields in the line share it.
    """
    field_pairs = [item.read(rng) for item in chunk]
    return LineProtocolRecord(
        measurement=measurement,
        field_pairs=field_pairs,
        timestamp_ms=clock(),
    )


class TierWorker:
    """
    Drive one tier's send loop against a ``PayloadWriter``.

    Parameters
    ----------
    tier : Tier
        Which tier this worker runs; supplies the default delay.
    items : sequence of MetricItem
        Items claimed for this tier. Fixed for the worker's lifetime.
    writer : PayloadWriter
        Destination for rendered records.
    measurement, chunk_size : optional
        Default to settings.
    delay_seconds : float, optional
        Override the tier's delay (tests use 0).
    rng, seed : optional
        Random source for values. ``rng`` wins over ``seed``; with neither,
        falls back to ``settings.seed`` (unseeded when that is unset).
    clock : callable, optional
        Millisecond timestamp source.
    report_timing : bool
        Log the cycle duration after every cycle.
    """

    def __init__(
        self,
        tier: Tier,
        items: Sequence[MetricItem],
        writer: PayloadWriter,
        measurement: Optional[str] = None,
        chunk_size: Optional[int] = None,
        delay_seconds: Optional[float] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        clock: Callable[[], int] = now_ms,
        report_timing: bool = False,
    ) -> None:
        settings = get_settings()
        self.tier = tier
        self.items = list(items)
        self.measurement = measurement or settings.measurement
        self.chunk_size = chunk_size if chunk_size is not None else settings.chunk_size
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else tier.profile.delay_seconds
        )
        self.report_timing = report_timing
        self._writer = writer
        self._rng = rng or random.Random(seed if seed is not None else settings.seed)
        self._clock = clock
        self.chunks = chunk_items(self.items, self.chunk_size)
        self.stats = TierStats(
            tier=tier.label,
            items=len(self.items),
            chunks_per_cycle=len(self.chunks),
        )

    async def _send_chunk(self, chunk: Sequence[MetricItem]) -> bool:
        record = build_record(chunk, self.measurement, self._rng, self._clock)
        return await self._writer.write(record.render())

    async def run_cycle(self) -> List[bool]:
        """
        Send every chunk once and wait for all of them.

        Returns one success flag per chunk, in chunk order.
        """
        with profile_block(f"{self.tier.value}-cycle", sample_resources=False) as stats:
            results = await asyncio.gather(
                *(self._send_chunk(chunk) for chunk in self.chunks),
                return_exceptions=True,
            )

        outcomes: List[bool] = []
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                log.error(
                    f"[CHUNK FAILED] {self.tier.label} chunk {index}: {result}",
                    extra={"tier": self.tier.value, "chunk": index},
                )
                outcomes.append(False)
            else:
                outcomes.append(bool(result))

        sent = sum(outcomes)
        self.stats.record_cycle(stats.duration_seconds, sent=sent, failed=len(outcomes) - sent)

        if self.report_timing:
            log.info(
                f"{self.tier.label}: {stats.duration_ms:.2f}",
                extra={"tier": self.tier.value, "cycle": self.stats.cycles},
            )
        return outcomes

    async def _pause(self, stop_event: asyncio.Event) -> None:
        """Sleep for the tier delay, waking early if ``stop_event`` is set."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=self.delay_seconds)
        except asyncio.TimeoutError:
            return

    async def run(
        self,
        stop_event: Optional[asyncio.Event] = None,
        max_cycles: Optional[int] = None,
    ) -> TierStats:
        """
        Cycle until ``stop_event`` is set or ``max_cycles`` cycles have run.

        With neither, runs until the task is cancelled.
        """
        if max_cycles is not None and max_cycles < 1:
            raise ValueError(f"max_cycles must be >= 1, got {max_cycles}")
        stop = stop_event or asyncio.Event()
        log.info(
            f"[TIER START] {self.tier.label}",
            extra={
                "tier": self.tier.value,
                "items": self.stats.items,
                "chunks": self.stats.chunks_per_cycle,
                "delay_seconds": self.delay_seconds,
            },
        )
        while not stop.is_set():
            await self.run_cycle()
            if max_cycles is not None and self.stats.cycles >= max_cycles:
                break
            await self._pause(stop)

        log.info(
            f"[TIER STOP] {self.tier.label}",
            extra={
                "tier": self.tier.value,
                "cycles": self.stats.cycles,
                "chunks_sent": self.stats.chunks_sent,
                "chunks_failed": self.stats.chunks_failed,
            },
        )
        return self.stats


__all__ = ["TierWorker", "build_record", "chunk_items", "now_ms"]
