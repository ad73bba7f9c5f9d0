"""Application configuration using pydantic-settings."""

import logging
import sys

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mercury_meter.protocol.constants import (
    CHANNEL_TIMEOUT,
    DEFAULT_ACCESS_LEVEL,
    DEFAULT_ADDRESS,
    DEFAULT_PASSWORD,
    INTER_COMMAND_DELAY,
    PASSWORD_LEN,
    SERIAL_BAUD,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with MERCURY_ (e.g., MERCURY_SERIAL_PORT).
    """

    serial_port: str = "/dev/ttyUSB0"
    serial_baud: int = SERIAL_BAUD
    log_level: str = "INFO"
    device_address: int = DEFAULT_ADDRESS
    access_level: int = DEFAULT_ACCESS_LEVEL
    password: list[int] = list(DEFAULT_PASSWORD)
    channel_timeout: float = CHANNEL_TIMEOUT
    inter_command_delay: float = INTER_COMMAND_DELAY

    model_config = SettingsConfigDict(env_prefix="MERCURY_")

    @field_validator("device_address", "access_level")
    @classmethod
    def validate_byte(cls, v: int) -> int:
        """Ensure the value fits in a single byte."""
        if not 0 <= v <= 0xFF:
            raise ValueError("must be in range 0-255")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: list[int]) -> list[int]:
        """Ensure the password is six byte values."""
        if len(v) != PASSWORD_LEN:
            raise ValueError(f"password must have {PASSWORD_LEN} bytes")
        if any(not 0 <= b <= 0xFF for b in v):
            raise ValueError("password bytes must be in range 0-255")
        return v

    @property
    def password_bytes(self) -> bytes:
        """Password as sent on the wire."""
        return bytes(self.password)


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
