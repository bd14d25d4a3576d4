"""Header and frame construction for FINS protocol."""

from fins_gateway.protocol.constants import DEFAULT_HEADER, SID_MAX, Command

_HEADER_FIELDS = ("icf", "rsv", "gct", "dna", "da1", "da2", "sna", "sa1", "sa2", "sid")


def increment_sid(sid: int) -> int:
    """Return the SID following *sid*, wrapping from 254 back to 1."""
    return (sid % SID_MAX) + 1


class FinsHeader:
    """
    Represents the 10-byte FINS header.

    Header structure:
    [ICF][RSV][GCT][DNA][DA1][DA2][SNA][SA1][SA2][SID]

    Addressing bytes stay fixed for the lifetime of a client; only the
    SID advances, once per request.

    Attributes:
        icf: Information control field
        rsv: Reserved (always 0)
        gct: Gateway count
        dna/da1/da2: Destination network, node and unit
        sna/sa1/sa2: Source network, node and unit
        sid: Service identifier of the last request sent
    """

    def __init__(
        self,
        icf: int = DEFAULT_HEADER["icf"],
        rsv: int = DEFAULT_HEADER["rsv"],
        gct: int = DEFAULT_HEADER["gct"],
        dna: int = DEFAULT_HEADER["dna"],
        da1: int = DEFAULT_HEADER["da1"],
        da2: int = DEFAULT_HEADER["da2"],
        sna: int = DEFAULT_HEADER["sna"],
        sa1: int = DEFAULT_HEADER["sa1"],
        sa2: int = DEFAULT_HEADER["sa2"],
        sid: int = DEFAULT_HEADER["sid"],
    ):
        self.icf = icf
        self.rsv = rsv
        self.gct = gct
        self.dna = dna
        self.da1 = da1
        self.da2 = da2
        self.sna = sna
        self.sa1 = sa1
        self.sa2 = sa2
        self.sid = sid

        for name in _HEADER_FIELDS:
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Header field {name} out of range: {value}")

    def next_sid(self) -> int:
        """Advance the SID and return the new value."""
        self.sid = increment_sid(self.sid)
        return self.sid

    def to_bytes(self) -> bytes:
        """Serialize the header in wire order."""
        return bytes(getattr(self, name) for name in _HEADER_FIELDS)

    def __repr__(self) -> str:
        return (
            f"FinsHeader(icf=0x{self.icf:02X}, gct={self.gct}, "
            f"dst={self.dna}.{self.da1}.{self.da2}, src={self.sna}.{self.sa1}.{self.sa2}, sid={self.sid})"
        )


class FinsFrame:
    """
    Represents a FINS request frame.

    Frame structure:
    [HEADER(10)][MRC][SRC][DATA...]

    Attributes:
        header: Header bytes snapshot taken at construction
        command: Command code
        data: Command data
    """

    def __init__(self, header: FinsHeader, command: Command, data: bytes = b""):
        self.header = header.to_bytes()
        self.sid = header.sid
        self.command = command
        self.data = data

    def to_bytes(self) -> bytes:
        """
        Convert frame to bytes for transmission.

        Example:
            >>> frame = FinsFrame(FinsHeader(sid=1), Command.RUN)
            >>> frame.to_bytes().hex()
            '800002000000002200010401'
        """
        return self.header + self.command.as_bytes() + self.data

    def __repr__(self) -> str:
        return f"FinsFrame(sid={self.sid}, cmd={self.command.name}, data_len={len(self.data)})"
