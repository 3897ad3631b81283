"""Runtime settings loaded from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .providers.yahoo import USER_AGENT

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "idx-cli" / "config.json"


def _int_env(name: str, default: Optional[int], minimum: int = 1) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    value = int(raw)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass
class Config:
    """Process settings. User collections live in the JSON record at `config_path`."""

    config_path: Path = DEFAULT_CONFIG_PATH

    # Quote refresh interval; None means use the persisted record's value
    refresh_interval_secs: Optional[int] = None
    news_refresh_interval_secs: int = 300

    # Network settings
    http_timeout: int = 15
    max_retries: int = 2
    retry_backoff_factor: float = 0.5
    user_agent: str = USER_AGENT

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables (and a .env file)."""
        load_dotenv()
        config_path = os.getenv("IDXWATCH_CONFIG_PATH", "").strip()
        return cls(
            config_path=Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH,
            refresh_interval_secs=_int_env("IDXWATCH_REFRESH_INTERVAL", None),
            news_refresh_interval_secs=_int_env("IDXWATCH_NEWS_REFRESH_INTERVAL", 300),
            http_timeout=_int_env("IDXWATCH_HTTP_TIMEOUT", 15),
            max_retries=_int_env("IDXWATCH_MAX_RETRIES", 2, minimum=0),
            user_agent=os.getenv("IDXWATCH_USER_AGENT", "").strip() or USER_AGENT,
            log_level=os.getenv("IDXWATCH_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
