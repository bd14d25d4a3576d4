"""UDP transport layer."""

from fins_gateway.transport.connection import FinsUdpConnection
from fins_gateway.transport.protocol import FinsDatagramProtocol

__all__ = ["FinsUdpConnection", "FinsDatagramProtocol"]
