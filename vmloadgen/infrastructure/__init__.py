"""
Infrastructure package for the load generator.

Centralizes outbound I/O to the metrics backend. Keep this layer focused on
transport concerns, decoupled from tier and orchestration logic.
"""

from vmloadgen.infrastructure.backend_client import (
    CONTENT_TYPE,
    BackendClient,
    build_write_url,
)

__all__ = [
    "CONTENT_TYPE",
    "BackendClient",
    "build_write_url",
]
