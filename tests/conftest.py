"""
Pytest configuration for the load generator.

Provides fixtures for:
- Settings cache isolation between tests
- In-memory payload writers standing in for the metrics backend
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

import pytest

from vmloadgen.config import get_settings


class RecordingWriter:
    """
    PayloadWriter double that keeps every payload it is given.

    ``fail_when`` decides per payload whether to report failure; returning
    an exception instance makes the write raise it instead.
    """

    def __init__(
        self,
        fail_when: Optional[Callable[[str], object]] = None,
        latency_seconds: float = 0.0,
    ) -> None:
        self.payloads: List[str] = []
        self.fail_when = fail_when
        self.latency_seconds = latency_seconds

    async def write(self, payload: str) -> bool:
        self.payloads.append(payload)
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        if self.fail_when is None:
            return True
        verdict = self.fail_when(payload)
        if isinstance(verdict, Exception):
            raise verdict
        return not verdict


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop the cached Settings so env overrides in one test don't leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def recording_writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def make_writer() -> Callable[..., RecordingWriter]:
    """Factory for writers with custom failure rules or latency."""
    return RecordingWriter
