"""Runtime configuration, read from environment variables (a local .env file is picked up as well)."""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Self

from dotenv import find_dotenv, load_dotenv

STORAGE_BACKENDS = {"sql", "file"}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_timeout(value: str) -> Optional[float]:
    """Empty means: block until the lock is available."""
    value = value.strip()
    if not value:
        return None
    return float(value)


@dataclass(frozen=True)
class Settings:
    # "sql" (database_url) or "file" (one JSON file per game in data_dir)
    storage: str = "sql"
    database_url: str = "sqlite:///derby.db"
    data_dir: str = "data/games"
    lock_timeout: Optional[float] = None
    log_level: str = "INFO"
    sql_echo: bool = False

    @classmethod
    def from_env(cls) -> Self:
        # .env in the working directory (or above it), never overriding real environment variables
        load_dotenv(find_dotenv(usecwd=True))
        storage = os.getenv("DERBY_STORAGE", cls.storage).strip().lower()
        if storage not in STORAGE_BACKENDS:
            raise ValueError(
                f"DERBY_STORAGE must be one of {sorted(STORAGE_BACKENDS)}, got {storage!r}"
            )
        return cls(
            storage=storage,
            database_url=os.getenv("DERBY_DATABASE_URL", cls.database_url),
            data_dir=os.getenv("DERBY_DATA_DIR", cls.data_dir),
            lock_timeout=_parse_timeout(os.getenv("DERBY_LOCK_TIMEOUT", "")),
            log_level=os.getenv("DERBY_LOG_LEVEL", cls.log_level).upper(),
            sql_echo=_parse_bool(os.getenv("DERBY_SQL_ECHO", "false")),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
