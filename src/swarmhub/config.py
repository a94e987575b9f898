"""Configuration constants, config file loading, and environment overrides."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

# Reputation rules
COMPLETION_BONUS = 10
REVIEW_STEP = 5
REVIEW_NEUTRAL_RATING = 3
MIN_RATING = 1
MAX_RATING = 5

# Swarm defaults
DEFAULT_MAX_MEMBERS = 5
MAX_SHARE_PERCENT = 100

# Agent registration
NAME_MIN_LENGTH = 2

# Query defaults
DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100
RECENT_REVIEWS = 5

# Server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3847
DEFAULT_DB_NAME = "swarmhub.db"
DEFAULT_IDENTITY_HEADER = "X-Agent-Id"
DEFAULT_LOG_LEVEL = "info"


def get_data_dir() -> Path:
    env = os.environ.get("SWARMHUB_DATA_DIR")
    if env:
        return Path(env)
    return Path.home() / ".swarmhub" / "data"


@dataclass
class Config:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    db_name: str = DEFAULT_DB_NAME
    identity_header: str = DEFAULT_IDENTITY_HEADER
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def db_path(self) -> Path:
        return get_data_dir() / self.db_name


def load_config(path: Path | None = None) -> Config:
    """Load config from JSON file with env var overrides."""
    config = Config()

    if path and path.exists():
        try:
            text = path.read_text()
            if text.strip():
                _apply_file(config, json.loads(text))
        except (json.JSONDecodeError, OSError):
            pass

    # Env var overrides
    host_env = os.environ.get("SWARMHUB_HOST")
    if host_env:
        config.host = host_env
    port_env = os.environ.get("SWARMHUB_PORT")
    if port_env:
        config.port = int(port_env)
    db_env = os.environ.get("SWARMHUB_DB_NAME")
    if db_env:
        config.db_name = db_env
    header_env = os.environ.get("SWARMHUB_IDENTITY_HEADER")
    if header_env:
        config.identity_header = header_env
    level_env = os.environ.get("SWARMHUB_LOG_LEVEL")
    if level_env:
        config.log_level = level_env.lower()

    return config


def _apply_file(cfg: Config, data: dict) -> None:
    if "host" in data:
        cfg.host = data["host"]
    if "port" in data:
        cfg.port = data["port"]
    if "db_name" in data:
        cfg.db_name = data["db_name"]
    if "identity_header" in data:
        cfg.identity_header = data["identity_header"]
    if "log_level" in data:
        cfg.log_level = str(data["log_level"]).lower()
