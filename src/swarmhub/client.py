"""httpx client wrapper for the SwarmHub HTTP API."""

from __future__ import annotations

import json
from pathlib import Path

import httpx

from swarmhub.config import DEFAULT_IDENTITY_HEADER, Config, get_data_dir, load_config


def port_lock_path() -> Path:
    return get_data_dir() / "port.lock"


def read_port_lock() -> dict:
    try:
        return json.loads(port_lock_path().read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def resolve_base_url(config: Config | None = None) -> str:
    """URL of the running local server, else the configured host and port."""
    if config is None:
        config = load_config()
    lock = read_port_lock()
    host = lock.get("host", config.host)
    port = lock.get("port", config.port)
    return f"http://{host}:{port}"


class SwarmHubClient:
    """Thin synchronous client; pass ``http_client`` to reuse an existing transport."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        agent_id: str | None = None,
        identity_header: str = DEFAULT_IDENTITY_HEADER,
        http_client: httpx.Client | None = None,
    ) -> None:
        if http_client is None:
            if base_url is None:
                base_url = resolve_base_url()
            http_client = httpx.Client(base_url=base_url, timeout=10.0)
        self._client = http_client
        self._headers = {identity_header: agent_id} if agent_id else {}

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: dict | None = None) -> dict:
        resp = self._client.get(path, params=params, headers=self._headers)
        resp.raise_for_status()
        return resp.json()

    def _post(self, path: str, body: dict | None = None) -> dict:
        resp = self._client.post(path, json=body or {}, headers=self._headers)
        resp.raise_for_status()
        return resp.json()

    def health(self) -> dict:
        return self._get("/health")

    def register(self, name: str, description: str = "", skills: list[str] | None = None) -> dict:
        return self._post(
            "/api/v1/agents/register",
            {"name": name, "description": description, "skills": skills or []},
        )

    def get_agent(self, name: str) -> dict:
        return self._get(f"/api/v1/agents/{name}")

    def leaderboard(self, limit: int = 20) -> dict:
        return self._get("/api/v1/leaderboard", params={"limit": limit})

    def list_swarms(self, status: str = "recruiting", skill: str | None = None) -> dict:
        params: dict = {"status": status}
        if skill:
            params["skill"] = skill
        return self._get("/api/v1/swarms", params=params)

    def create_swarm(self, name: str, **fields: object) -> dict:
        return self._post("/api/v1/swarms", {"name": name, **fields})

    def apply(self, swarm_id: str) -> dict:
        return self._post(f"/api/v1/swarms/{swarm_id}/apply")

    def invite(self, swarm_id: str, agent_name: str, share_percent: int = 0) -> dict:
        return self._post(
            f"/api/v1/swarms/{swarm_id}/invite",
            {"agent_name": agent_name, "share_percent": share_percent},
        )

    def accept(self, swarm_id: str, agent_name: str | None = None) -> dict:
        body = {"agent_name": agent_name} if agent_name else {}
        return self._post(f"/api/v1/swarms/{swarm_id}/accept", body)

    def start(self, swarm_id: str) -> dict:
        return self._post(f"/api/v1/swarms/{swarm_id}/start")

    def complete(self, swarm_id: str, deliverable: str = "") -> dict:
        return self._post(f"/api/v1/swarms/{swarm_id}/complete", {"deliverable": deliverable})

    def review(self, agent_name: str, rating: int, comment: str = "") -> dict:
        return self._post(
            "/api/v1/reviews",
            {"agent_name": agent_name, "rating": rating, "comment": comment},
        )
