from __future__ import annotations

import asyncio

import pytest

from vmloadgen import orchestrator
from vmloadgen.domain.models import Tier
from vmloadgen.orchestrator import RunConfig, run_load
from vmloadgen.workers.tier_worker import TierWorker

NO_DELAY = {tier: 0.0 for tier in Tier}


def _names(payload: str) -> set[str]:
    body = payload.split(" ")[1]
    return {field.split("=")[0] for field in body.split(",")}


@pytest.mark.asyncio
async def test_single_tier_pool_of_ten_sends_one_post_per_cycle(recording_writer) -> None:
    stats = await run_load(
        RunConfig(tiers=["fast"], pool_size=10, max_cycles=4, delay_overrides=NO_DELAY),
        client=recording_writer,
    )

    assert len(stats) == 1
    assert stats[0].tier == "Fast"
    assert stats[0].items == 10
    assert stats[0].cycles == 4
    assert len(recording_writer.payloads) == 4
    expected = {f"Flux{i:05d}" for i in range(1, 11)}
    assert all(_names(payload) == expected for payload in recording_writer.payloads)


@pytest.mark.asyncio
async def test_tiers_never_share_items(recording_writer) -> None:
    stats = await run_load(
        RunConfig(pool_size=7000, chunk_size=1000, max_cycles=1, delay_overrides=NO_DELAY),
        client=recording_writer,
    )

    assert [s.tier for s in stats] == ["Fast", "Medium", "Slow", "VerySlow"]
    assert [s.items for s in stats] == [2000, 2000, 2000, 1000]
    assert [s.chunks_per_cycle for s in stats] == [2, 2, 2, 1]

    seen: list[str] = []
    for payload in recording_writer.payloads:
        seen.extend(_names(payload))
    assert len(seen) == len(set(seen)) == 7000


@pytest.mark.asyncio
async def test_duration_stops_all_tiers(recording_writer) -> None:
    stats = await asyncio.wait_for(
        run_load(
            RunConfig(tiers=["medium", "very_slow"], pool_size=50, duration_seconds=0.2),
            client=recording_writer,
        ),
        timeout=5,
    )

    medium, very_slow = stats
    assert medium.cycles >= 2
    # VerySlow sleeps a full second between cycles; stopping cuts the sleep short.
    assert very_slow.cycles == 1


@pytest.mark.asyncio
async def test_external_stop_event_ends_run(recording_writer) -> None:
    stop = asyncio.Event()
    task = asyncio.create_task(
        run_load(RunConfig(tiers=["slow"], pool_size=5), client=recording_writer, stop_event=stop)
    )
    await asyncio.sleep(0.05)
    stop.set()

    stats = await asyncio.wait_for(task, timeout=2)

    assert stats[0].cycles == 1


@pytest.mark.asyncio
async def test_worker_crash_cancels_siblings_and_surfaces(monkeypatch, recording_writer) -> None:
    original = TierWorker.run_cycle

    async def flaky_run_cycle(self):
        if self.tier is Tier.MEDIUM:
            raise RuntimeError("tier exploded")
        return await original(self)

    monkeypatch.setattr(TierWorker, "run_cycle", flaky_run_cycle)

    with pytest.raises(RuntimeError, match="tier exploded"):
        await asyncio.wait_for(
            run_load(
                RunConfig(tiers=["fast", "medium"], pool_size=20, delay_overrides={Tier.FAST: 0.001}),
                client=recording_writer,
            ),
            timeout=5,
        )


@pytest.mark.asyncio
async def test_failed_writes_are_counted_not_raised(make_writer) -> None:
    writer = make_writer(fail_when=lambda payload: True)

    stats = await run_load(
        RunConfig(tiers=["fast"], pool_size=2500, max_cycles=2, delay_overrides=NO_DELAY),
        client=writer,
    )

    assert stats[0].cycles == 2
    assert stats[0].chunks_sent == 0
    assert stats[0].chunks_failed == 4


@pytest.mark.asyncio
async def test_seed_gives_reproducible_runs(make_writer) -> None:
    runs = []
    for _ in range(2):
        writer = make_writer()
        await run_load(
            RunConfig(tiers=["fast", "slow"], pool_size=30, max_cycles=1, seed=11, delay_overrides=NO_DELAY),
            client=writer,
        )
        runs.append(sorted(payload.rsplit(" ", 1)[0] for payload in writer.payloads))

    assert runs[0] == runs[1]


@pytest.mark.asyncio
async def test_invalid_configuration_fails_before_sending(recording_writer) -> None:
    with pytest.raises(ValueError, match="chunk_size"):
        await run_load(RunConfig(tiers=["fast"], pool_size=5, chunk_size=0), client=recording_writer)
    with pytest.raises(ValueError, match="listed more than once"):
        await run_load(RunConfig(tiers=["fast", "Fast"]), client=recording_writer)
    with pytest.raises(ValueError, match="Unknown tier"):
        await run_load(RunConfig(tiers=["warp"]), client=recording_writer)

    assert recording_writer.payloads == []


@pytest.mark.asyncio
async def test_owned_backend_client_is_closed(monkeypatch) -> None:
    created = []

    class _FakeBackendClient:
        def __init__(self) -> None:
            self.closed = False
            self.payloads = []
            created.append(self)

        async def write(self, payload: str) -> bool:
            self.payloads.append(payload)
            return True

        async def aclose(self) -> None:
            self.closed = True

    monkeypatch.setattr(orchestrator, "BackendClient", _FakeBackendClient)

    await run_load(RunConfig(tiers=["slow"], pool_size=3, max_cycles=1))

    assert len(created) == 1
    assert created[0].closed is True
    assert len(created[0].payloads) == 1


@pytest.mark.asyncio
async def test_timing_tier_follows_config(recording_writer, caplog) -> None:
    with caplog.at_level("INFO", logger="vmloadgen.workers.tier_worker"):
        await run_load(
            RunConfig(
                tiers=["fast", "slow"],
                pool_size=4,
                max_cycles=1,
                timing_tier="slow",
                delay_overrides=NO_DELAY,
            ),
            client=recording_writer,
        )

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("Slow: ") for m in messages)
    assert not any(m.startswith("Fast: ") for m in messages)


@pytest.mark.asyncio
async def test_zero_max_cycles_is_rejected(recording_writer) -> None:
    with pytest.raises(ValueError, match="max_cycles must be >= 1"):
        await run_load(RunConfig(tiers=["fast"], pool_size=5, max_cycles=0), client=recording_writer)

    assert recording_writer.payloads == []


@pytest.mark.asyncio
async def test_seeded_tier_stream_does_not_depend_on_other_tiers(make_writer) -> None:
    def values(payload: str) -> list[str]:
        body = payload.split(" ")[1]
        return [field.split("=")[1] for field in body.split(",")]

    alone, alongside = make_writer(), make_writer()
    await run_load(
        RunConfig(tiers=["slow"], pool_size=5, max_cycles=1, seed=11, delay_overrides=NO_DELAY),
        client=alone,
    )
    # Fast takes the first 2000 ids, so Slow gets ids 2001..2005 here.
    await run_load(
        RunConfig(
            tiers=["fast", "slow"],
            pool_size=2005,
            chunk_size=5,
            max_cycles=1,
            seed=11,
            delay_overrides=NO_DELAY,
        ),
        client=alongside,
    )

    slow_payload = next(p for p in alongside.payloads if "Flux02001=" in p)
    assert values(slow_payload) == values(alone.payloads[0])
