"""
Transports - HTTP send/receive capability
"""

from .base import Transport, TransportResponse
from .httpx_transport import HttpxTransport
from .requests_transport import RequestsTransport

__all__ = [
    "Transport",
    "TransportResponse",
    "HttpxTransport",
    "RequestsTransport",
]
