"""FINS protocol implementation."""

from fins_gateway.protocol.codec import (
    decode_response,
    parse_memory_address,
    translate_memory_address,
    words_to_bytes,
)
from fins_gateway.protocol.constants import (
    MEMORY_AREAS,
    Command,
    Mode,
    Status,
)
from fins_gateway.protocol.correlator import Correlator
from fins_gateway.protocol.frames import FinsFrame, FinsHeader

# FinsClient imported lazily to avoid circular import with core.config
# (core.config -> protocol.constants -> protocol.__init__ -> client -> core.config)


def __getattr__(name: str):
    if name == "FinsClient":
        from fins_gateway.protocol.client import FinsClient

        return FinsClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Command",
    "Correlator",
    "FinsClient",
    "FinsFrame",
    "FinsHeader",
    "MEMORY_AREAS",
    "Mode",
    "Status",
    "decode_response",
    "parse_memory_address",
    "translate_memory_address",
    "words_to_bytes",
]
