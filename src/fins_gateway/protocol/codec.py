"""Request encoding and reply decoding for FINS protocol."""

import logging
import re
import struct
from collections.abc import Callable, Iterable
from enum import IntEnum

from fins_gateway.core.models import FinsResponse, ReadResponse, StatusResponse
from fins_gateway.errors import FinsDecodeError
from fins_gateway.protocol.constants import (
    COMMAND_OFFSET,
    END_CODE_OFFSET,
    FALLBACK_MEMORY_AREA,
    FATAL_ERROR_FLAGS,
    FATAL_ERROR_OFFSET,
    MEMORY_AREAS,
    NON_FATAL_ERROR_FLAGS,
    NON_FATAL_ERROR_OFFSET,
    PAYLOAD_OFFSET,
    RESPONSE_HEADER_LEN,
    SID_OFFSET,
    STATUS_RESPONSE_LEN,
    Command,
    Mode,
    Status,
)
from fins_gateway.protocol.frames import FinsFrame, FinsHeader

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"(.)([0-9]*):?([0-9]*)")

# ============================================================================
# Encoding
# ============================================================================


def words_to_bytes(words: int | Iterable[int]) -> bytes:
    """
    Encode one word or a sequence of words as big-endian byte pairs.

    A register count and a list of data words go through the same encoder.

    Example:
        >>> words_to_bytes(2)
        b'\\x00\\x02'
        >>> words_to_bytes([0x1234, 0xABCD])
        b'\\x124\\xab\\xcd'
    """
    if isinstance(words, int):
        words = [words]

    out = bytearray()
    for word in words:
        out.append((word & 0xFF00) >> 8)
        out.append(word & 0x00FF)
    return bytes(out)


def translate_memory_address(address: str) -> bytes:
    """
    Translate a memory address like ``D100`` or ``W0:5`` into wire bytes.

    Returns:
        ``[area, address_high, address_low, bit]``. Letters outside
        MEMORY_AREAS are encoded as FALLBACK_MEMORY_AREA rather than rejected.

    Raises:
        ValueError: If the address is empty or the word/bit is out of range
    """
    match = _ADDRESS_RE.match(address)
    if match is None:
        raise ValueError(f"Invalid memory address: {address!r}")

    area_letter, word_str, bit_str = match.groups()
    word = int(word_str) if word_str else 0
    bit = int(bit_str) if bit_str else 0

    if word > 0xFFFF:
        raise ValueError(f"Word address out of range in {address!r}: {word}")
    if bit > 0xFF:
        raise ValueError(f"Bit address out of range in {address!r}: {bit}")

    area = MEMORY_AREAS.get(area_letter)
    if area is None:
        logger.debug("Unknown memory area %r in %r, using 0x%02X", area_letter, address, FALLBACK_MEMORY_AREA)
        area = FALLBACK_MEMORY_AREA

    return bytes([area]) + words_to_bytes(word) + bytes([bit])


def parse_memory_address(data: bytes) -> tuple[int, int, int]:
    """Split 4 address bytes back into (area, word, bit)."""
    if len(data) < 4:
        raise ValueError(f"Memory address too short: {len(data)} bytes")
    area, word, bit = struct.unpack(">BHB", data[:4])
    return area, word, bit


def encode_request(header: FinsHeader, command: Command, data: bytes = b"") -> FinsFrame:
    """Advance the header SID and wrap *command* and *data* in a frame."""
    header.next_sid()
    return FinsFrame(header, command, data)


def build_read_request(header: FinsHeader, address: str, count: int) -> FinsFrame:
    """MEMORY AREA READ: address(4) + word count(2)."""
    data = translate_memory_address(address) + words_to_bytes(count)
    return encode_request(header, Command.MEMORY_AREA_READ, data)


def build_write_request(header: FinsHeader, address: str, values: int | list[int]) -> FinsFrame:
    """MEMORY AREA WRITE: address(4) + word count(2) + data(2 x count).

    A single int is written as a one-word write.
    """
    if isinstance(values, int):
        values = [values]
    data = translate_memory_address(address) + words_to_bytes(len(values)) + words_to_bytes(values)
    return encode_request(header, Command.MEMORY_AREA_WRITE, data)


def build_fill_request(header: FinsHeader, address: str, value: int, count: int) -> FinsFrame:
    """MEMORY AREA FILL: address(4) + word count(2) + fill value(2)."""
    data = translate_memory_address(address) + words_to_bytes(count) + words_to_bytes(value)
    return encode_request(header, Command.MEMORY_AREA_FILL, data)


def build_run_request(header: FinsHeader) -> FinsFrame:
    return encode_request(header, Command.RUN)


def build_stop_request(header: FinsHeader) -> FinsFrame:
    return encode_request(header, Command.STOP)


def build_status_request(header: FinsHeader) -> FinsFrame:
    return encode_request(header, Command.CONTROLLER_STATUS_READ)


# ============================================================================
# Decoding
# ============================================================================


def _name_for(enum_cls: type[IntEnum], code: int) -> str | None:
    """Reverse-map a code to its symbolic name (first match wins)."""
    for member in enum_cls:
        if member.value == code:
            return member.name
    return None


def decode_error_flags(field: int, flags: tuple[tuple[str, int], ...]) -> list[str]:
    """Return the names of all flags whose mask is set in *field*."""
    return [name for name, mask in flags if field & mask]


def _common_fields(data: bytes, remote_host: str) -> dict:
    return {
        "remote_host": remote_host,
        "sid": data[SID_OFFSET],
        "command": data[COMMAND_OFFSET:END_CODE_OFFSET].hex(),
        "response_code": data[END_CODE_OFFSET:PAYLOAD_OFFSET].hex(),
    }


def _decode_default(data: bytes, remote_host: str) -> FinsResponse:
    return FinsResponse(**_common_fields(data, remote_host))


def _decode_status_read(data: bytes, remote_host: str) -> StatusResponse:
    if len(data) < STATUS_RESPONSE_LEN:
        fields = _common_fields(data, remote_host)
        # A rejected request carries an end code and no status payload
        if fields["response_code"] != "0000":
            return StatusResponse(**fields)
        raise FinsDecodeError(f"Status reply too short: {len(data)} bytes", data=data)

    fatal = struct.unpack(">H", data[FATAL_ERROR_OFFSET : FATAL_ERROR_OFFSET + 2])[0]
    non_fatal = struct.unpack(">H", data[NON_FATAL_ERROR_OFFSET : NON_FATAL_ERROR_OFFSET + 2])[0]

    return StatusResponse(
        **_common_fields(data, remote_host),
        status=_name_for(Status, data[PAYLOAD_OFFSET]),
        mode=_name_for(Mode, data[PAYLOAD_OFFSET + 1]),
        fatal_error_data=decode_error_flags(fatal, FATAL_ERROR_FLAGS),
        non_fatal_error_data=decode_error_flags(non_fatal, NON_FATAL_ERROR_FLAGS),
    )


def _decode_memory_area_read(data: bytes, remote_host: str) -> ReadResponse:
    payload = data[PAYLOAD_OFFSET:]
    if len(payload) % 2:
        raise FinsDecodeError(f"Read reply payload has odd length: {len(payload)} bytes", data=data)

    values = list(struct.unpack(f">{len(payload) // 2}h", payload))
    return ReadResponse(**_common_fields(data, remote_host), values=values)


_DECODERS: dict[int, Callable[[bytes, str], FinsResponse]] = {
    Command.CONTROLLER_STATUS_READ: _decode_status_read,
    Command.MEMORY_AREA_READ: _decode_memory_area_read,
}


def decode_response(data: bytes, remote_host: str) -> FinsResponse:
    """
    Decode an inbound datagram into a response record.

    Dispatches on the echoed command bytes; commands without a dedicated
    decoder yield a plain FinsResponse.

    Args:
        data: Raw datagram
        remote_host: Address of the sender

    Returns:
        FinsResponse, StatusResponse or ReadResponse

    Raises:
        FinsDecodeError: If the datagram is too short for its command
    """
    if len(data) < RESPONSE_HEADER_LEN:
        raise FinsDecodeError(f"Reply too short: {len(data)} bytes", data=data)

    command = int.from_bytes(data[COMMAND_OFFSET:END_CODE_OFFSET], "big")
    decoder = _DECODERS.get(command, _decode_default)
    return decoder(data, remote_host)
