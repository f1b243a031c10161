"""Configuration settings for the sampling approval client."""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class Settings(BaseSettings):
    """Client settings with environment variable support.

    All settings can be overridden via environment variables with
    SAMPLING_APPROVAL_ prefix.

    Examples:
        >>> settings = Settings()
        >>> settings.stream_path
        '/sampling/stream'
    """

    model_config = SettingsConfigDict(env_prefix="SAMPLING_APPROVAL_")

    # Backend endpoint and credentials (empty means unavailable)
    backend_url: str = ""
    secret_key: str = ""
    auth_header: str = "X-Secret-Key"

    # Routes
    stream_path: str = "/sampling/stream"
    pending_path: str = "/sampling/pending"

    # Reconnection: delay before attempt k is base * 2**k
    reconnect_base_delay_seconds: float = Field(default=1.0, gt=0)
    max_reconnect_attempts: int = Field(default=5, ge=0)

    # Timeouts
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    stream_read_timeout_seconds: float | None = None  # None keeps the stream open indefinitely

    log_level: str = "INFO"

    def reconnect_delay(self, attempt: int) -> float:
        """Get backoff delay before reconnect attempt.

        Args:
            attempt: Zero-based number of reconnects already made

        Returns:
            Delay in seconds
        """
        return self.reconnect_base_delay_seconds * (2 ** attempt)


def configure_logging(level: str | int | None = None, settings: Settings | None = None) -> None:
    """Configure root logging for host applications.

    Args:
        level: Explicit log level; falls back to settings.log_level
        settings: Settings to read log_level from
    """
    if level is None:
        level = (settings or Settings()).log_level
    if isinstance(level, str):
        level = level.upper()

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("sampling_approval").setLevel(level)
