"""Runtime configuration and logging setup."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

APP_VERSION = "0.1.0"

# Default data directory
DATA_DIR = Path(__file__).parent.parent.parent / "data"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass
class Settings:
    """Settings resolved from the environment (and an optional .env file)."""

    data_dir: Path = DATA_DIR
    db_name: str = "lift_ledger.db"
    log_level: str = "INFO"
    search_cache_size: int = 50
    analytics_days: int = 90
    leaderboard_limit: int = 10

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from LIFT_LEDGER_* environment variables."""
        load_dotenv(override=False)
        data_dir = os.getenv("LIFT_LEDGER_DATA_DIR")
        return cls(
            data_dir=Path(data_dir) if data_dir else DATA_DIR,
            db_name=os.getenv("LIFT_LEDGER_DB_NAME", "lift_ledger.db"),
            log_level=os.getenv("LIFT_LEDGER_LOG_LEVEL", "INFO").upper(),
            search_cache_size=int(os.getenv("LIFT_LEDGER_SEARCH_CACHE_SIZE", "50")),
            analytics_days=int(os.getenv("LIFT_LEDGER_ANALYTICS_DAYS", "90")),
            leaderboard_limit=int(os.getenv("LIFT_LEDGER_LEADERBOARD_LIMIT", "10")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings."""
    return Settings.from_env()


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


def configure_logging(level: str | None = None) -> None:
    """Install a stream handler on the root logger (no-op if one exists)."""
    if level is None:
        level = get_settings().log_level

    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
