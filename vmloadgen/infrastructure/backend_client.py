"""
HTTP client for the metrics backend.

Wraps a single ``httpx.AsyncClient`` that POSTs line-protocol payloads to the
VictoriaMetrics Influx-compatible write endpoint. Every failure is terminal
for that one request only: it is logged and reported through the return
value, never raised. There is no retry and no circuit breaking; connection
reuse is whatever httpx provides by default.
"""

from __future__ import annotations

from types import TracebackType
from typing import Optional, Type

import httpx

from vmloadgen.config import get_settings
from vmloadgen.utils.logging import get_logger

log = get_logger(__name__)

CONTENT_TYPE = "application/x-www-form-urlencoded"


def build_write_url(base_url: Optional[str] = None, write_path: Optional[str] = None) -> str:
    """
    Build the write endpoint URL from explicit values or current settings.
    """
    settings = get_settings()
    base = (base_url or settings.vm_base_url).rstrip("/")
    path = write_path or settings.vm_write_path
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{base}{path}"


class BackendClient:
    """
    Thin POST wrapper around ``httpx.AsyncClient``.

    Use as an async context manager, or call ``aclose()`` when done. A client
    passed in via ``http_client`` is not closed by this wrapper.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        write_path: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = get_settings()
        self.url = build_write_url(base_url, write_path)
        self.timeout = timeout if timeout is not None else settings.vm_request_timeout_seconds
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

    async def write(self, payload: str) -> bool:
        """
        POST one line-protocol payload.

        Returns True on a 2xx response, False otherwise. Never raises.
        """
        try:
            response = await self._client.post(
                self.url,
                content=payload.encode("utf-8"),
                headers={"Content-Type": CONTENT_TYPE},
            )
        except Exception as exc:  # noqa: BLE001 - every failure is dropped for this request only
            log.error(
                f"Error: {str(exc) or type(exc).__name__}",
                extra={"url": self.url, "error_type": type(exc).__name__},
            )
            return False

        if not response.is_success:
            log.error(
                f"Error: {response.status_code} - {response.reason_phrase}",
                extra={"url": self.url, "status_code": response.status_code},
            )
            return False
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()


__all__ = ["BackendClient", "CONTENT_TYPE", "build_write_url"]
