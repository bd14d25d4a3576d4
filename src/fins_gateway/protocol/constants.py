"""Protocol constants for FINS communication."""

from enum import IntEnum

# ============================================================================
# Frame Structure
# ============================================================================

RESPONSE_HEADER_LEN = 14  # Header(10) + Command(2) + End code(2)

SID_OFFSET = 9
COMMAND_OFFSET = 10
END_CODE_OFFSET = 12
PAYLOAD_OFFSET = 14

SID_MAX = 254

# ============================================================================
# Addresses
# ============================================================================

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9600  # FINS/UDP standard port

# Header template: (field, default byte)
DEFAULT_HEADER = {
    "icf": 0x80,
    "rsv": 0x00,
    "gct": 0x02,
    "dna": 0x00,
    "da1": 0x00,
    "da2": 0x00,
    "sna": 0x00,
    "sa1": 0x22,
    "sa2": 0x00,
    "sid": 0x00,
}

# ============================================================================
# Command Codes
# ============================================================================


class Command(IntEnum):
    """FINS command codes (MRC << 8 | SRC)."""

    MEMORY_AREA_READ = 0x0101
    MEMORY_AREA_WRITE = 0x0102
    MEMORY_AREA_FILL = 0x0103
    RUN = 0x0401
    STOP = 0x0402
    CONTROLLER_STATUS_READ = 0x0601

    def as_bytes(self) -> bytes:
        """Return the two-byte opcode as sent on the wire."""
        return bytes([(self.value >> 8) & 0xFF, self.value & 0xFF])


# ============================================================================
# Memory Areas
# ============================================================================

MEMORY_AREAS = {
    "E": 0xA0,  # Extended memory
    "C": 0xB0,  # CIO
    "W": 0xB1,  # Work area
    "H": 0xB2,  # Holding area
    "A": 0xB3,  # Auxiliary area
    "D": 0x82,  # Data memory
}

# Unknown area letters are encoded with this byte instead of being rejected
FALLBACK_MEMORY_AREA = 0x82

# ============================================================================
# Controller Status
# ============================================================================


class Status(IntEnum):
    """CPU run status reported by CONTROLLER STATUS READ."""

    STOP = 0x00
    RUN = 0x01
    CPU_STANDBY = 0x80


class Mode(IntEnum):
    """CPU operating mode reported by CONTROLLER STATUS READ."""

    DEBUG = 0x01
    MONITOR = 0x02
    RUN = 0x04


FATAL_ERROR_FLAGS: tuple[tuple[str, int], ...] = (
    ("SYSTEM_ERROR", 1 << 6),
    ("IO_SETTING_ERROR", 1 << 10),
    ("IO_POINT_OVERFLOW", 1 << 11),
    ("CPU_BUS_ERROR", 1 << 14),
    ("MEMORY_ERROR", 1 << 15),
)

NON_FATAL_ERROR_FLAGS: tuple[tuple[str, int], ...] = (
    ("PC_LINK_ERROR", 1 << 0),
    ("HOST_LINK_ERROR", 1 << 1),
    ("BATTERY_ERROR", 1 << 4),
    ("REMOTE_IO_ERROR", 1 << 5),
    ("SPECIAL_IO_UNIT_ERROR", 1 << 8),
    ("IO_COLLATE_ERROR", 1 << 9),
    ("SYSTEM_ERROR", 1 << 15),
)

FATAL_ERROR_OFFSET = 17
NON_FATAL_ERROR_OFFSET = 18
STATUS_RESPONSE_LEN = 20

# ============================================================================
# End Codes
# ============================================================================

# Main response code (first end-code byte) descriptions
END_CODE_MESSAGES = {
    0x00: "Normal completion",
    0x01: "Local node error",
    0x02: "Destination node error",
    0x03: "Communications controller error",
    0x04: "Not executable",
    0x05: "Routing error",
    0x10: "Command format error",
    0x11: "Parameter error",
    0x20: "Read not possible",
    0x21: "Write not possible",
    0x22: "Not executable in current mode",
    0x23: "No unit",
    0x24: "Start/stop not possible",
    0x25: "Unit error",
    0x26: "Command error",
    0x30: "Access right error",
    0x40: "Abort",
}

# ============================================================================
# Communication Settings
# ============================================================================

DEFAULT_TIMEOUT = 2000  # Client-level silence timeout (milliseconds)
RESPONSE_ATTEMPTS = 5  # Correlation attempts per request
RESPONSE_INTERVAL = 0.2  # Seconds per correlation attempt
