"""SwarmStore: SQLite-backed entity store for agents, swarms, memberships, reviews."""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from swarmhub.models import (
    Agent,
    MemberRole,
    MemberView,
    Membership,
    MembershipStatus,
    PendingInvite,
    ReceivedReview,
    Review,
    Swarm,
    SwarmStatus,
    SwarmSummary,
)
from swarmhub.store.schema import run_migrations

_AGENT_UPDATABLE = {"description", "skills", "available", "rate", "last_active"}


class SwarmStore:
    """Entity store with per-statement atomicity and explicit transactions.

    The connection runs in autocommit mode; ``transaction()`` groups several
    statements into one ``BEGIN IMMEDIATE`` unit so multi-row writes are
    all-or-nothing.
    """

    def __init__(self, path: str = ":memory:") -> None:
        self._conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._depth = 0
        run_migrations(self._conn)

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed writes atomically. Nested use joins the outer unit."""
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._conn.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._conn.execute("ROLLBACK")
                raise
            self._depth -= 1
            if outermost:
                self._conn.execute("COMMIT")

    def _execute(self, sql: str, params: tuple | list = ()) -> sqlite3.Cursor:
        with self._lock:
            return self._conn.execute(sql, params)

    # -- Agents -------------------------------------------------------------

    def insert_agent(self, agent: Agent) -> Agent:
        self._execute(
            """INSERT INTO agents
               (id, name, description, skills, reputation, completed_swarms,
                failed_swarms, available, rate, created_at, last_active)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                agent.id,
                agent.name,
                agent.description,
                json.dumps(agent.skills),
                agent.reputation,
                agent.completed_swarms,
                agent.failed_swarms,
                int(agent.available),
                agent.rate,
                agent.created_at,
                agent.last_active,
            ),
        )
        return agent

    def get_agent(self, agent_id: str) -> Agent | None:
        row = self._execute("SELECT * FROM agents WHERE id = ?", (agent_id,)).fetchone()
        return self._row_to_agent(row) if row else None

    def get_agent_by_name(self, name: str) -> Agent | None:
        """Case-insensitive lookup (the name column is declared NOCASE)."""
        row = self._execute("SELECT * FROM agents WHERE name = ?", (name,)).fetchone()
        return self._row_to_agent(row) if row else None

    def update_agent(self, agent_id: str, **fields: object) -> None:
        unknown = set(fields) - _AGENT_UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update agent fields: {sorted(unknown)}")
        if not fields:
            return
        assignments: list[str] = []
        params: list = []
        for key, value in fields.items():
            if key == "skills":
                value = json.dumps(value)
            elif key == "available":
                value = int(bool(value))
            assignments.append(f"{key} = ?")
            params.append(value)
        params.append(agent_id)
        self._execute(f"UPDATE agents SET {', '.join(assignments)} WHERE id = ?", params)

    def adjust_agent_stats(
        self,
        agent_id: str,
        *,
        reputation: int = 0,
        completed: int = 0,
        failed: int = 0,
    ) -> None:
        """Add to reputation and outcome counters in a single statement."""
        self._execute(
            """UPDATE agents SET
                 reputation = MAX(0, reputation + ?),
                 completed_swarms = completed_swarms + ?,
                 failed_swarms = failed_swarms + ?
               WHERE id = ?""",
            (reputation, completed, failed, agent_id),
        )

    def search_agents(
        self,
        *,
        skill: str | None = None,
        available: bool | None = None,
        min_reputation: int | None = None,
        limit: int = 20,
    ) -> list[Agent]:
        clauses: list[str] = []
        params: list = []
        if skill:
            clauses.append("skills LIKE ?")
            params.append(f"%{skill}%")
        if available is not None:
            clauses.append("available = ?")
            params.append(int(available))
        if min_reputation is not None:
            clauses.append("reputation >= ?")
            params.append(min_reputation)
        where = " AND ".join(clauses) if clauses else "1=1"
        params.append(limit)
        rows = self._execute(
            f"SELECT * FROM agents WHERE {where} ORDER BY reputation DESC, name ASC LIMIT ?",
            params,
        ).fetchall()
        return [self._row_to_agent(r) for r in rows]

    def top_agents(self, limit: int = 20) -> list[Agent]:
        return self.search_agents(limit=limit)

    # -- Swarms -------------------------------------------------------------

    def insert_swarm(self, swarm: Swarm) -> Swarm:
        self._execute(
            """INSERT INTO swarms
               (id, name, description, creator_id, status, required_skills,
                max_members, payment_total, deliverable, deadline,
                created_at, completed_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                swarm.id,
                swarm.name,
                swarm.description,
                swarm.creator_id,
                swarm.status.value,
                json.dumps(swarm.required_skills),
                swarm.max_members,
                swarm.payment_total,
                swarm.deliverable,
                swarm.deadline,
                swarm.created_at,
                swarm.completed_at,
            ),
        )
        return swarm

    def get_swarm(self, swarm_id: str) -> Swarm | None:
        row = self._execute("SELECT * FROM swarms WHERE id = ?", (swarm_id,)).fetchone()
        return self._row_to_swarm(row) if row else None

    def transition_swarm(
        self,
        swarm_id: str,
        expected: SwarmStatus,
        target: SwarmStatus,
        *,
        deliverable: str | None = None,
        completed_at: int | None = None,
    ) -> bool:
        """Set status to target only where it currently equals expected.

        Returns False when another writer moved the swarm first.
        """
        cursor = self._execute(
            """UPDATE swarms SET
                 status = ?,
                 deliverable = COALESCE(?, deliverable),
                 completed_at = COALESCE(?, completed_at)
               WHERE id = ? AND status = ?""",
            (target.value, deliverable, completed_at, swarm_id, expected.value),
        )
        return cursor.rowcount == 1

    def list_swarms(
        self,
        *,
        status: SwarmStatus = SwarmStatus.RECRUITING,
        skill: str | None = None,
        limit: int = 20,
    ) -> list[SwarmSummary]:
        sql = """
            SELECT s.*, a.name AS creator_name,
              (SELECT COUNT(*) FROM swarm_members
               WHERE swarm_id = s.id AND status = 'accepted') AS member_count
            FROM swarms s
            JOIN agents a ON s.creator_id = a.id
            WHERE s.status = ?
        """
        params: list = [status.value]
        if skill:
            sql += " AND s.required_skills LIKE ?"
            params.append(f"%{skill}%")
        sql += " ORDER BY s.created_at DESC, s.rowid DESC LIMIT ?"
        params.append(limit)
        rows = self._execute(sql, params).fetchall()
        return [
            SwarmSummary(
                swarm=self._row_to_swarm(r),
                creator_name=r["creator_name"],
                member_count=r["member_count"],
            )
            for r in rows
        ]

    # -- Memberships --------------------------------------------------------

    def insert_membership(self, membership: Membership) -> Membership:
        """Insert a new row; raises sqlite3.IntegrityError if the pair exists."""
        self._execute(
            """INSERT INTO swarm_members
               (swarm_id, agent_id, role, share_percent, status, joined_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            self._membership_params(membership),
        )
        return membership

    def upsert_membership(self, membership: Membership) -> Membership:
        """Create or replace the row for (swarm_id, agent_id)."""
        self._execute(
            """INSERT INTO swarm_members
               (swarm_id, agent_id, role, share_percent, status, joined_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(swarm_id, agent_id) DO UPDATE SET
                 role=excluded.role, share_percent=excluded.share_percent,
                 status=excluded.status, joined_at=excluded.joined_at""",
            self._membership_params(membership),
        )
        return membership

    def get_membership(self, swarm_id: str, agent_id: str) -> Membership | None:
        row = self._execute(
            "SELECT * FROM swarm_members WHERE swarm_id = ? AND agent_id = ?",
            (swarm_id, agent_id),
        ).fetchone()
        return self._row_to_membership(row) if row else None

    def set_membership_status(
        self, swarm_id: str, agent_id: str, status: MembershipStatus
    ) -> None:
        self._execute(
            "UPDATE swarm_members SET status = ? WHERE swarm_id = ? AND agent_id = ?",
            (status.value, swarm_id, agent_id),
        )

    def list_memberships(
        self, swarm_id: str, status: MembershipStatus | None = None
    ) -> list[Membership]:
        if status:
            rows = self._execute(
                "SELECT * FROM swarm_members WHERE swarm_id = ? AND status = ?"
                " ORDER BY joined_at ASC, rowid ASC",
                (swarm_id, status.value),
            ).fetchall()
        else:
            rows = self._execute(
                "SELECT * FROM swarm_members WHERE swarm_id = ? ORDER BY joined_at ASC, rowid ASC",
                (swarm_id,),
            ).fetchall()
        return [self._row_to_membership(r) for r in rows]

    def list_members(self, swarm_id: str) -> list[MemberView]:
        rows = self._execute(
            """SELECT a.id, a.name, a.reputation, sm.role, sm.share_percent, sm.status
               FROM swarm_members sm
               JOIN agents a ON sm.agent_id = a.id
               WHERE sm.swarm_id = ?
               ORDER BY sm.joined_at ASC, sm.rowid ASC""",
            (swarm_id,),
        ).fetchall()
        return [
            MemberView(
                agent_id=r["id"],
                name=r["name"],
                reputation=r["reputation"],
                role=MemberRole(r["role"]),
                share_percent=r["share_percent"],
                status=MembershipStatus(r["status"]),
            )
            for r in rows
        ]

    def accepted_share_total(self, swarm_id: str, *, excluding: str | None = None) -> int:
        row = self._execute(
            """SELECT COALESCE(SUM(share_percent), 0) FROM swarm_members
               WHERE swarm_id = ? AND status = 'accepted' AND agent_id != ?""",
            (swarm_id, excluding or ""),
        ).fetchone()
        return row[0]

    def pending_invites(self, agent_id: str) -> list[PendingInvite]:
        rows = self._execute(
            """SELECT s.id, s.name, s.description, sm.share_percent
               FROM swarm_members sm
               JOIN swarms s ON sm.swarm_id = s.id
               WHERE sm.agent_id = ? AND sm.status = 'pending'
               ORDER BY sm.joined_at DESC""",
            (agent_id,),
        ).fetchall()
        return [
            PendingInvite(
                swarm_id=r["id"],
                name=r["name"],
                description=r["description"],
                share_percent=r["share_percent"],
            )
            for r in rows
        ]

    # -- Reviews ------------------------------------------------------------

    def insert_review(self, review: Review) -> Review:
        self._execute(
            """INSERT INTO reviews
               (id, reviewer_id, reviewee_id, swarm_id, rating, comment, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                review.id,
                review.reviewer_id,
                review.reviewee_id,
                review.swarm_id,
                review.rating,
                review.comment,
                review.created_at,
            ),
        )
        return review

    def recent_reviews_for(self, agent_id: str, limit: int = 5) -> list[ReceivedReview]:
        rows = self._execute(
            """SELECT r.rating, r.comment, r.created_at, a.name AS reviewer_name
               FROM reviews r
               JOIN agents a ON r.reviewer_id = a.id
               WHERE r.reviewee_id = ?
               ORDER BY r.created_at DESC, r.rowid DESC LIMIT ?""",
            (agent_id, limit),
        ).fetchall()
        return [
            ReceivedReview(
                rating=r["rating"],
                comment=r["comment"],
                created_at=r["created_at"],
                reviewer_name=r["reviewer_name"],
            )
            for r in rows
        ]

    # -- Stats --------------------------------------------------------------

    def get_stats(self) -> dict:
        total_agents = self._execute("SELECT COUNT(*) FROM agents").fetchone()[0]
        total_reviews = self._execute("SELECT COUNT(*) FROM reviews").fetchone()[0]
        status_rows = self._execute(
            "SELECT status, COUNT(*) AS cnt FROM swarms GROUP BY status"
        ).fetchall()
        swarms_by_status = {row["status"]: row["cnt"] for row in status_rows}
        return {
            "total_agents": total_agents,
            "total_swarms": sum(swarms_by_status.values()),
            "swarms_by_status": swarms_by_status,
            "total_reviews": total_reviews,
        }

    # -- Row mapping --------------------------------------------------------

    @staticmethod
    def _membership_params(m: Membership) -> tuple:
        return (m.swarm_id, m.agent_id, m.role.value, m.share_percent, m.status.value, m.joined_at)

    @staticmethod
    def _row_to_agent(row: sqlite3.Row) -> Agent:
        return Agent(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            skills=json.loads(row["skills"]),
            reputation=row["reputation"],
            completed_swarms=row["completed_swarms"],
            failed_swarms=row["failed_swarms"],
            available=bool(row["available"]),
            rate=row["rate"],
            created_at=row["created_at"],
            last_active=row["last_active"],
        )

    @staticmethod
    def _row_to_swarm(row: sqlite3.Row) -> Swarm:
        return Swarm(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            creator_id=row["creator_id"],
            status=SwarmStatus(row["status"]),
            required_skills=json.loads(row["required_skills"]),
            max_members=row["max_members"],
            payment_total=row["payment_total"],
            deliverable=row["deliverable"],
            deadline=row["deadline"],
            created_at=row["created_at"],
            completed_at=row["completed_at"],
        )

    @staticmethod
    def _row_to_membership(row: sqlite3.Row) -> Membership:
        return Membership(
            swarm_id=row["swarm_id"],
            agent_id=row["agent_id"],
            role=MemberRole(row["role"]),
            share_percent=row["share_percent"],
            status=MembershipStatus(row["status"]),
            joined_at=row["joined_at"],
        )
