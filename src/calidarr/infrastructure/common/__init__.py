"""Common infrastructure utilities."""

from __future__ import annotations

from .retry_transport import RetryTransport, create_http_client
from .size import format_bytes

__all__ = [
    "RetryTransport",
    "create_http_client",
    "format_bytes",
]
