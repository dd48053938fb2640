"""
Orchestrator for running the tier workers against the metrics backend.

Usage (example from CLI):
    from vmloadgen.orchestrator import RunConfig, run_load

    stats = asyncio.run(run_load(RunConfig(duration_seconds=30)))

Startup drains the item pool once, tier by tier in declaration order, so each
tier gets ``min(quota, remaining)`` items. After that the tiers never
coordinate: one task per tier runs until the shared stop event is set, the
optional duration elapses, or every tier has run ``max_cycles`` cycles.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Union

from vmloadgen.config import get_settings
from vmloadgen.domain.models import DEFAULT_TIERS, MetricItem, Tier
from vmloadgen.infrastructure.backend_client import BackendClient
from vmloadgen.pool import ItemPool
from vmloadgen.utils.logging import get_logger
from vmloadgen.workers.abstract import PayloadWriter, TierStats
from vmloadgen.workers.tier_worker import TierWorker

log = get_logger(__name__)

_TIMING_DISABLED = ("", "none", "off")


@dataclass
class RunConfig:
    """
    Knobs for a single load run. Unset values fall back to settings.

    ``delay_overrides`` replaces the per-tier delay (in seconds) and exists
    mainly so tests can run cycles back to back.
    """

    tiers: Sequence[Union[Tier, str]] = DEFAULT_TIERS
    pool_size: Optional[int] = None
    chunk_size: Optional[int] = None
    measurement: Optional[str] = None
    duration_seconds: Optional[float] = None
    max_cycles: Optional[int] = None
    seed: Optional[int] = None
    timing_tier: Optional[str] = None
    delay_overrides: Dict[Tier, float] = field(default_factory=dict)


def available_tiers() -> List[str]:
    """List tier names in the order they drain the pool."""
    return [tier.value for tier in DEFAULT_TIERS]


def _resolve_tiers(names: Iterable[Union[Tier, str]]) -> List[Tier]:
    tiers: List[Tier] = []
    for name in names:
        tier = name if isinstance(name, Tier) else Tier.parse(name)
        if tier in tiers:
            raise ValueError(f"Tier '{tier.value}' listed more than once")
        tiers.append(tier)
    return tiers


def _resolve_timing_tier(name: Optional[str]) -> Optional[Tier]:
    if name is None or name.strip().lower() in _TIMING_DISABLED:
        return None
    return Tier.parse(name)


def _tier_seed(base_seed: Optional[int], tier: Tier) -> Optional[int]:
    if base_seed is None:
        return None
    return base_seed + DEFAULT_TIERS.index(tier)


def partition_pool(pool: ItemPool, tiers: Sequence[Tier]) -> Dict[Tier, List[MetricItem]]:
    """
    Claim each tier's quota from ``pool`` in the given order.

    Later tiers receive fewer (or zero) items once the pool runs dry.
    """
    assignments: Dict[Tier, List[MetricItem]] = {}
    for tier in tiers:
        quota = tier.profile.quota
        items = pool.claim(quota)
        assignments[tier] = items
        if len(items) < quota:
            log.warning(
                f"[PARTITION] {tier.label} short of quota: {len(items)}/{quota} items",
                extra={"tier": tier.value, "items": len(items), "quota": quota},
            )
        else:
            log.info(
                f"[PARTITION] {tier.label}: {len(items)} items",
                extra={"tier": tier.value, "items": len(items), "quota": quota},
            )
    return assignments


def build_workers(
    assignments: Dict[Tier, List[MetricItem]],
    writer: PayloadWriter,
    config: RunConfig,
) -> List[TierWorker]:
    settings = get_settings()
    base_seed = config.seed if config.seed is not None else settings.seed
    timing_name = config.timing_tier if config.timing_tier is not None else settings.timing_tier
    timing_tier = _resolve_timing_tier(timing_name)

    workers: List[TierWorker] = []
    for tier, items in assignments.items():
        workers.append(
            TierWorker(
                tier=tier,
                items=items,
                writer=writer,
                measurement=config.measurement,
                chunk_size=config.chunk_size,
                delay_seconds=config.delay_overrides.get(tier),
                # Keyed on the tier, not its position in this run, so a seed
                # gives each tier the same stream whatever else is running.
                seed=_tier_seed(base_seed, tier),
                report_timing=tier is timing_tier,
            )
        )
    return workers


async def _supervise(tasks: List[asyncio.Task]) -> None:
    """
    Wait for every tier task. If one fails, cancel the rest and re-raise.
    """
    if not tasks:
        return
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    failed = [task for task in done if not task.cancelled() and task.exception() is not None]
    if failed:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        exc = failed[0].exception()
        log.error(
            f"[TIER FAILED] {failed[0].get_name()}: {exc}",
            extra={"task": failed[0].get_name()},
        )
        raise exc


async def run_load(
    config: Optional[RunConfig] = None,
    client: Optional[PayloadWriter] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> List[TierStats]:
    """
    Partition the pool, run one task per tier and return their stats.

    Parameters
    ----------
    config : RunConfig | None
        Run parameters; defaults reproduce the stock four-tier load.
    client : PayloadWriter | None
        Destination for payloads. When None a ``BackendClient`` is created
        from settings and closed on return.
    stop_event : asyncio.Event | None
        Set it to stop all tiers after their current cycle.

    Returns
    -------
    List[TierStats]
        One entry per tier, in declaration order.
    """
    config = config or RunConfig()
    if config.max_cycles is not None and config.max_cycles < 1:
        raise ValueError(f"max_cycles must be >= 1, got {config.max_cycles}")
    settings = get_settings()
    tiers = _resolve_tiers(config.tiers)
    pool_size = config.pool_size if config.pool_size is not None else settings.pool_size

    pool = ItemPool(pool_size)
    assignments = partition_pool(pool, tiers)

    owned_client = BackendClient() if client is None else None
    writer: PayloadWriter = client if client is not None else owned_client
    stop = stop_event or asyncio.Event()
    timer: Optional[asyncio.TimerHandle] = None

    try:
        workers = build_workers(assignments, writer, config)
        log.info(
            "[ORCHESTRATOR START]",
            extra={
                "tiers": [tier.value for tier in tiers],
                "pool_size": pool_size,
                "unclaimed": pool.remaining,
                "duration_seconds": config.duration_seconds,
                "max_cycles": config.max_cycles,
            },
        )
        if config.duration_seconds is not None:
            timer = asyncio.get_running_loop().call_later(config.duration_seconds, stop.set)

        tasks = [
            asyncio.create_task(
                worker.run(stop, max_cycles=config.max_cycles),
                name=f"tier-{worker.tier.value}",
            )
            for worker in workers
        ]
        await _supervise(tasks)
    finally:
        if timer is not None:
            timer.cancel()
        stop.set()
        if owned_client is not None:
            await owned_client.aclose()

    stats = [worker.stats for worker in workers]
    log.info(
        f"[ORCHESTRATOR COMPLETE] {len(stats)} tier(s) stopped",
        extra={"stats": [s.as_dict() for s in stats]},
    )
    return stats


__all__ = [
    "RunConfig",
    "available_tiers",
    "build_workers",
    "partition_pool",
    "run_load",
]
