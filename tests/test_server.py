"""Tests for HTTP API server routes."""

import pytest
from starlette.testclient import TestClient

from swarmhub.config import Config
from swarmhub.server.app import create_app


@pytest.fixture
def client(clock):
    app = create_app(db_path=":memory:", config=Config(), clock=clock)
    with TestClient(app) as c:
        yield c


def _register(client: TestClient, name: str, **fields) -> dict:
    resp = client.post("/api/v1/agents/register", json={"name": name, **fields})
    assert resp.status_code == 200
    return resp.json()["agent"]


def _as(agent: dict) -> dict:
    return {"X-Agent-Id": agent["id"]}


@pytest.fixture
def alice(client: TestClient) -> dict:
    return _register(client, "Alice", skills=["planning"])


@pytest.fixture
def bob(client: TestClient) -> dict:
    return _register(client, "Bob", skills=["python"])


@pytest.fixture
def swarm(client: TestClient, alice: dict) -> dict:
    resp = client.post(
        "/api/v1/swarms",
        json={"name": "Launch", "required_skills": ["python"], "payment_total": 500},
        headers=_as(alice),
    )
    assert resp.status_code == 200
    return resp.json()["swarm"]


class TestSystemRoutes:
    def test_health(self, client: TestClient):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "service": "swarmhub"}

    def test_version(self, client: TestClient):
        resp = client.get("/api/version")
        assert resp.status_code == 200
        assert "version" in resp.json()

    def test_stats(self, client: TestClient, swarm: dict):
        data = client.get("/api/stats").json()
        assert data["total_agents"] == 1
        assert data["total_swarms"] == 1
        assert data["swarms_by_status"] == {"recruiting": 1}


class TestAgentRoutes:
    def test_register(self, client: TestClient):
        agent = _register(client, "Dana", description="ops", skills=["k8s"])
        assert agent["name"] == "Dana"
        assert agent["reputation"] == 0
        assert agent["skills"] == ["k8s"]

    def test_register_short_name(self, client: TestClient):
        resp = client.post("/api/v1/agents/register", json={"name": "D"})
        assert resp.status_code == 400
        assert resp.json()["kind"] == "validation_error"

    def test_register_duplicate(self, client: TestClient, alice: dict):
        resp = client.post("/api/v1/agents/register", json={"name": "alice"})
        assert resp.status_code == 409

    def test_register_malformed_body(self, client: TestClient):
        resp = client.post(
            "/api/v1/agents/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 422

    def test_register_wrong_field_type(self, client: TestClient):
        resp = client.post("/api/v1/agents/register", json={"name": "Dana", "skills": "k8s"})
        assert resp.status_code == 422

    def test_me_requires_identity(self, client: TestClient):
        assert client.get("/api/v1/agents/me").status_code == 401

    def test_me_unknown_identity(self, client: TestClient):
        resp = client.get("/api/v1/agents/me", headers={"X-Agent-Id": "nobody"})
        assert resp.status_code == 401
        assert resp.json()["kind"] == "unauthenticated"

    def test_me(self, client: TestClient, alice: dict):
        data = client.get("/api/v1/agents/me", headers=_as(alice)).json()
        assert data["agent"]["id"] == alice["id"]
        assert data["pending_invites"] == []

    def test_me_marks_activity(self, client: TestClient, alice: dict):
        data = client.get("/api/v1/agents/me", headers=_as(alice)).json()
        assert data["agent"]["last_active"] > alice["last_active"]

    def test_update_me(self, client: TestClient, alice: dict):
        resp = client.patch(
            "/api/v1/agents/me", json={"available": False, "rate": "5/task"}, headers=_as(alice)
        )
        assert resp.status_code == 200
        agent = resp.json()["agent"]
        assert agent["available"] is False
        assert agent["rate"] == "5/task"

    def test_update_me_empty(self, client: TestClient, alice: dict):
        resp = client.patch("/api/v1/agents/me", json={}, headers=_as(alice))
        assert resp.status_code == 400

    def test_public_profile(self, client: TestClient, alice: dict):
        resp = client.get("/api/v1/agents/ALICE")
        assert resp.status_code == 200
        data = resp.json()
        assert data["agent"]["name"] == "Alice"
        assert data["trust_score"] == 0.0
        assert data["success_rate"] == 0.0
        assert data["reviews"] == []

    def test_public_profile_unknown(self, client: TestClient):
        assert client.get("/api/v1/agents/ghost").status_code == 404

    def test_search(self, client: TestClient, alice: dict, bob: dict):
        data = client.get("/api/v1/agents", params={"skill": "python"}).json()
        assert data["count"] == 1
        assert data["agents"][0]["name"] == "Bob"

    def test_search_bad_min_reputation(self, client: TestClient):
        resp = client.get("/api/v1/agents", params={"min_reputation": "lots"})
        assert resp.status_code == 422

    def test_search_bad_limit(self, client: TestClient):
        assert client.get("/api/v1/agents", params={"limit": "many"}).status_code == 422


class TestSwarmRoutes:
    def test_create_requires_identity(self, client: TestClient):
        resp = client.post("/api/v1/swarms", json={"name": "Launch"})
        assert resp.status_code == 401

    def test_create(self, swarm: dict, alice: dict):
        assert swarm["status"] == "recruiting"
        assert swarm["creator_id"] == alice["id"]
        assert swarm["max_members"] == 5

    def test_create_without_name(self, client: TestClient, alice: dict):
        resp = client.post("/api/v1/swarms", json={}, headers=_as(alice))
        assert resp.status_code == 400

    def test_list(self, client: TestClient, swarm: dict):
        data = client.get("/api/v1/swarms").json()
        assert data["count"] == 1
        assert data["swarms"][0]["creator_name"] == "Alice"
        assert data["swarms"][0]["member_count"] == 1

    def test_list_unknown_status(self, client: TestClient):
        assert client.get("/api/v1/swarms", params={"status": "done"}).status_code == 400

    def test_list_bad_limit(self, client: TestClient):
        assert client.get("/api/v1/swarms", params={"limit": "ten"}).status_code == 422

    def test_detail(self, client: TestClient, swarm: dict):
        data = client.get(f"/api/v1/swarms/{swarm['id']}").json()
        assert data["swarm"]["id"] == swarm["id"]
        assert data["creator_name"] == "Alice"
        assert [m["role"] for m in data["members"]] == ["creator"]

    def test_detail_unknown(self, client: TestClient):
        assert client.get("/api/v1/swarms/missing").status_code == 404

    def test_apply_twice(self, client: TestClient, swarm: dict, bob: dict):
        url = f"/api/v1/swarms/{swarm['id']}/apply"
        first = client.post(url, headers=_as(bob))
        assert first.status_code == 200
        assert first.json()["membership"]["status"] == "pending"
        assert client.post(url, headers=_as(bob)).status_code == 409

    def test_invite_share_out_of_range(self, client: TestClient, swarm: dict, bob: dict, alice: dict):
        resp = client.post(
            f"/api/v1/swarms/{swarm['id']}/invite",
            json={"agent_name": "Bob", "share_percent": 150},
            headers=_as(alice),
        )
        assert resp.status_code == 400

    def test_non_creator_gets_opaque_404(self, client: TestClient, swarm: dict, bob: dict):
        resp = client.post(f"/api/v1/swarms/{swarm['id']}/start", headers=_as(bob))
        assert resp.status_code == 404
        assert resp.json()["error"] == "Swarm not found or not authorized"

    def test_full_lifecycle(self, client: TestClient, swarm: dict, alice: dict, bob: dict):
        base = f"/api/v1/swarms/{swarm['id']}"

        resp = client.post(
            f"{base}/invite", json={"agent_name": "bob", "share_percent": 40}, headers=_as(alice)
        )
        assert resp.status_code == 200
        invites = client.get("/api/v1/agents/me", headers=_as(bob)).json()["pending_invites"]
        assert invites[0]["swarm_id"] == swarm["id"]

        resp = client.post(f"{base}/accept", headers=_as(bob))
        assert resp.json()["membership"]["status"] == "accepted"

        resp = client.post(f"{base}/start", headers=_as(alice))
        assert resp.json()["swarm"]["status"] == "active"

        resp = client.post(f"{base}/complete", json={"deliverable": "v1.0"}, headers=_as(alice))
        assert resp.status_code == 200
        data = resp.json()
        assert data["swarm"]["status"] == "completed"
        assert data["swarm"]["deliverable"] == "v1.0"
        assert data["members_rewarded"] == 2
        assert set(data["rewarded_agent_ids"]) == {alice["id"], bob["id"]}

        profile = client.get("/api/v1/agents/Bob").json()
        assert profile["agent"]["reputation"] == 10
        assert profile["agent"]["completed_swarms"] == 1
        assert profile["success_rate"] == 100.0

        detail = client.get(base).json()
        assert detail["allocated_share"] == 0
        assert {m["status"] for m in detail["members"]} == {"completed"}

        again = client.post(f"{base}/complete", headers=_as(alice))
        assert again.status_code == 404

    def test_creator_accepts_applicant(self, client: TestClient, swarm: dict, alice: dict, bob: dict):
        base = f"/api/v1/swarms/{swarm['id']}"
        client.post(f"{base}/apply", headers=_as(bob))
        resp = client.post(f"{base}/accept", json={"agent_name": "Bob"}, headers=_as(alice))
        assert resp.status_code == 200
        assert resp.json()["membership"]["agent_id"] == bob["id"]

    def test_fail(self, client: TestClient, swarm: dict, alice: dict, bob: dict):
        base = f"/api/v1/swarms/{swarm['id']}"
        client.post(f"{base}/apply", headers=_as(bob))
        client.post(f"{base}/accept", json={"agent_name": "Bob"}, headers=_as(alice))

        resp = client.post(f"{base}/fail", headers=_as(alice))
        assert resp.status_code == 200
        data = resp.json()
        assert data["swarm"]["status"] == "failed"
        assert set(data["failed_agent_ids"]) == {alice["id"], bob["id"]}
        assert client.get("/api/v1/agents/Bob").json()["agent"]["failed_swarms"] == 1


class TestReviewRoutes:
    def test_review(self, client: TestClient, alice: dict, bob: dict):
        resp = client.post(
            "/api/v1/reviews",
            json={"agent_name": "Bob", "rating": 5, "comment": "fast"},
            headers=_as(alice),
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["reputation_change"] == 10
        assert data["review"]["reviewee_id"] == bob["id"]

        reviews = client.get("/api/v1/agents/Bob").json()["reviews"]
        assert reviews[0]["reviewer_name"] == "Alice"

    def test_self_review(self, client: TestClient, alice: dict):
        resp = client.post(
            "/api/v1/reviews", json={"agent_name": "Alice", "rating": 5}, headers=_as(alice)
        )
        assert resp.status_code == 400

    def test_missing_rating(self, client: TestClient, alice: dict, bob: dict):
        resp = client.post("/api/v1/reviews", json={"agent_name": "Bob"}, headers=_as(alice))
        assert resp.status_code == 400

    def test_unknown_reviewee(self, client: TestClient, alice: dict):
        resp = client.post(
            "/api/v1/reviews", json={"agent_name": "Ghost", "rating": 3}, headers=_as(alice)
        )
        assert resp.status_code == 404

    def test_requires_identity(self, client: TestClient, bob: dict):
        resp = client.post("/api/v1/reviews", json={"agent_name": "Bob", "rating": 3})
        assert resp.status_code == 401

    def test_leaderboard(self, client: TestClient, alice: dict, bob: dict):
        client.post(
            "/api/v1/reviews", json={"agent_name": "Bob", "rating": 4}, headers=_as(alice)
        )
        data = client.get("/api/v1/leaderboard", params={"limit": 1}).json()
        assert [e["name"] for e in data["leaderboard"]] == ["Bob"]
        assert data["leaderboard"][0]["reputation"] == 5

    def test_leaderboard_bad_limit(self, client: TestClient):
        assert client.get("/api/v1/leaderboard", params={"limit": "x"}).status_code == 422
