"""Run the SwarmHub API under uvicorn and advertise it through port.lock."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from swarmhub.client import port_lock_path
from swarmhub.config import Config, load_config

logger = logging.getLogger(__name__)

APP_FACTORY = "swarmhub.server.app:create_app"


@contextmanager
def advertised(config: Config) -> Iterator[Path]:
    """Publish host, port and pid for local clients while the block runs."""
    lock_path = port_lock_path()
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.write_text(
        json.dumps({"host": config.host, "port": config.port, "pid": os.getpid()})
    )
    try:
        yield lock_path
    finally:
        lock_path.unlink(missing_ok=True)


def run_server(config: Config | None = None) -> None:
    """Serve until uvicorn exits; uvicorn owns SIGINT/SIGTERM handling."""
    import uvicorn

    if config is None:
        config = load_config()
    config.db_path.parent.mkdir(parents=True, exist_ok=True)

    with advertised(config) as lock_path:
        logger.info(f"SwarmHub listening on {config.host}:{config.port} ({lock_path})")
        uvicorn.run(
            APP_FACTORY,
            factory=True,
            host=config.host,
            port=config.port,
            log_level=config.log_level,
        )
