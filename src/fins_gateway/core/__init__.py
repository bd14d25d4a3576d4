"""Core application functionality."""

from fins_gateway.core.config import Settings, setup_logging
from fins_gateway.core.models import FinsResponse, ReadResponse, StatusResponse

__all__ = [
    "FinsResponse",
    "ReadResponse",
    "Settings",
    "StatusResponse",
    "setup_logging",
]
