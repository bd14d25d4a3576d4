"""Exceptions for fins-gateway: malformed replies and unanswered requests."""


class FinsError(Exception):
    """Base exception for fins-gateway."""

    pass


class FinsDecodeError(FinsError, ValueError):
    """Raised when an inbound datagram cannot be decoded as a FINS reply."""

    def __init__(self, message: str, *, data: bytes = b"") -> None:
        self.data = data
        super().__init__(message)


class FinsResponseTimeout(FinsError, TimeoutError):
    """Raised when no reply carrying the request's SID arrives in time."""

    def __init__(self, sid: int, message: str | None = None) -> None:
        self.sid = sid
        super().__init__(message or f"Data not found for {sid}")
