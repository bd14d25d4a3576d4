"""fins-gateway: asyncio FINS/UDP client and REST gateway for PLCs."""

__version__ = "0.1.0"
