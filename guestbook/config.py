"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and GUESTBOOK_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Type-3 executor options carrying a single receive-gas entry of 50,000.
DEFAULT_OPTIONS_HEX = "0x0003010011010000000000000000000000000000c350"


class GuestbookConfig(BaseSettings):
    """Guestbook configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export GUESTBOOK_LOCAL_CHAIN_ID=40161
        export GUESTBOOK_LOG_LEVEL=DEBUG
        export GUESTBOOK_LOG_PATH=/data/public_log.db

    Or via .env file::

        GUESTBOOK_ENVIRONMENT=production
        GUESTBOOK_BASE_FEE=25000
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GUESTBOOK_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Local identity
    local_chain_id: int = 1

    # Public log storage
    log_path: Path = Path(".guestbook/public_log.db")

    # Messaging
    default_options_hex: str = DEFAULT_OPTIONS_HEX
    base_fee: int = 1000
    fee_per_byte: int = 0

    # Historical replay chunk size (callers chunk; the replayer does not)
    replay_batch_size: int = 50

    @field_validator("default_options_hex")
    @classmethod
    def _check_options_hex(cls, value: str) -> str:
        body = value[2:] if value.startswith(("0x", "0X")) else value
        bytes.fromhex(body)
        return value

    @field_validator("replay_batch_size")
    @classmethod
    def _check_batch_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("replay_batch_size must be at least 1")
        return value

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    @property
    def default_options(self) -> bytes:
        """Executor options as raw bytes."""
        value = self.default_options_hex
        body = value[2:] if value.startswith(("0x", "0X")) else value
        return bytes.fromhex(body)


# Module-level singleton — import as `from guestbook.config import config`
config = GuestbookConfig()
