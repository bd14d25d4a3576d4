"""FastAPI dependency injection for shared application state."""

from fins_gateway.core.config import Settings
from fins_gateway.protocol.client import FinsClient


class AppState:
    """Holds shared application state instances.

    Created during app startup and accessed via FastAPI dependencies.
    """

    def __init__(self) -> None:
        self.settings: Settings | None = None
        self.client: FinsClient | None = None


# Global app state singleton
app_state = AppState()


def get_client() -> FinsClient:
    """Get the FINS client instance."""
    assert app_state.client is not None, "App not initialized"
    return app_state.client
