"""Application configuration using pydantic-settings."""

import logging
import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fins_gateway.protocol.constants import (
    DEFAULT_HEADER,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    RESPONSE_ATTEMPTS,
    RESPONSE_INTERVAL,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with FINS_ (e.g., FINS_PLC_HOST).
    """

    plc_host: str = DEFAULT_HOST
    plc_port: int = Field(DEFAULT_PORT, ge=1, le=65535)
    timeout: int = Field(DEFAULT_TIMEOUT, ge=0, description="Silence timeout in milliseconds")
    response_attempts: int = Field(RESPONSE_ATTEMPTS, ge=1)
    response_interval: float = Field(RESPONSE_INTERVAL, gt=0)

    gateway_count: int = Field(DEFAULT_HEADER["gct"], ge=0, le=255)
    destination_network: int = Field(DEFAULT_HEADER["dna"], ge=0, le=255)
    destination_node: int = Field(DEFAULT_HEADER["da1"], ge=0, le=255)
    destination_unit: int = Field(DEFAULT_HEADER["da2"], ge=0, le=255)
    source_network: int = Field(DEFAULT_HEADER["sna"], ge=0, le=255)
    source_node: int = Field(DEFAULT_HEADER["sa1"], ge=0, le=255)
    source_unit: int = Field(DEFAULT_HEADER["sa2"], ge=0, le=255)

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="FINS_")


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
