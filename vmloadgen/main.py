from __future__ import annotations

import asyncio
import signal
import sys
from typing import List, Optional

import typer

from vmloadgen.config import get_settings
from vmloadgen.infrastructure.backend_client import build_write_url
from vmloadgen.orchestrator import RunConfig, run_load
from vmloadgen.reporter import print_stats, print_tiers
from vmloadgen.utils.logging import configure_logging
from vmloadgen.workers.abstract import TierStats

app = typer.Typer(help="VictoriaMetrics tiered load generator CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"URL={build_write_url()} | measurement={settings.measurement} "
        f"pool={settings.pool_size} chunk={settings.chunk_size} "
        f"timeout={settings.vm_request_timeout_seconds}s timing_tier={settings.timing_tier}"
    )


@app.command()
def tiers() -> None:
    """
    Show tier quotas and delays.
    """
    print_tiers()


async def _run_until_signalled(config: RunConfig) -> List[TierStats]:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops; Ctrl+C falls back to KeyboardInterrupt.
            continue
        installed.append(sig)
    try:
        return await run_load(config, stop_event=stop)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


@app.command()
def run(
    duration: Optional[float] = typer.Option(
        None,
        "--duration",
        "-d",
        help="Stop after this many seconds (default: run until interrupted).",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Seed value generation for reproducible payloads.",
    ),
    pool_size: Optional[int] = typer.Option(
        None,
        "--pool-size",
        "-p",
        help="Override number of metric items in the pool (default from settings).",
    ),
) -> None:
    """
    Push synthetic metrics at all four tiers until interrupted.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    config = RunConfig(duration_seconds=duration, seed=seed, pool_size=pool_size)
    typer.echo(
        f"Sending to {build_write_url()} "
        f"(pool={pool_size or settings.pool_size}, chunk={settings.chunk_size}). "
        "Press Ctrl+C to stop."
    )
    stats = asyncio.run(_run_until_signalled(config))
    print_stats(stats)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
