"""SQLite DDL and migration runner for the swarm entity store."""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA_VERSIONS_DDL = """
CREATE TABLE IF NOT EXISTS schema_versions (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

AGENTS_DDL = """
CREATE TABLE IF NOT EXISTS agents (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE COLLATE NOCASE,
    description TEXT NOT NULL DEFAULT '',
    skills TEXT NOT NULL DEFAULT '[]',
    reputation INTEGER NOT NULL DEFAULT 0 CHECK (reputation >= 0),
    completed_swarms INTEGER NOT NULL DEFAULT 0,
    failed_swarms INTEGER NOT NULL DEFAULT 0,
    available INTEGER NOT NULL DEFAULT 1,
    rate TEXT,
    created_at INTEGER NOT NULL,
    last_active INTEGER NOT NULL
);
"""

SWARMS_DDL = """
CREATE TABLE IF NOT EXISTS swarms (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    creator_id TEXT NOT NULL REFERENCES agents(id),
    status TEXT NOT NULL DEFAULT 'recruiting'
        CHECK (status IN ('recruiting', 'active', 'completed', 'failed')),
    required_skills TEXT NOT NULL DEFAULT '[]',
    max_members INTEGER NOT NULL DEFAULT 5,
    payment_total INTEGER NOT NULL DEFAULT 0,
    deliverable TEXT,
    deadline INTEGER,
    created_at INTEGER NOT NULL,
    completed_at INTEGER
);
"""

SWARM_MEMBERS_DDL = """
CREATE TABLE IF NOT EXISTS swarm_members (
    swarm_id TEXT NOT NULL REFERENCES swarms(id),
    agent_id TEXT NOT NULL REFERENCES agents(id),
    role TEXT NOT NULL CHECK (role IN ('creator', 'member')),
    share_percent INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'accepted', 'completed', 'failed')),
    joined_at INTEGER NOT NULL,
    PRIMARY KEY (swarm_id, agent_id)
);
"""

REVIEWS_DDL = """
CREATE TABLE IF NOT EXISTS reviews (
    id TEXT PRIMARY KEY,
    reviewer_id TEXT NOT NULL REFERENCES agents(id),
    reviewee_id TEXT NOT NULL REFERENCES agents(id),
    swarm_id TEXT REFERENCES swarms(id),
    rating INTEGER NOT NULL CHECK (rating >= 1 AND rating <= 5),
    comment TEXT NOT NULL DEFAULT '',
    created_at INTEGER NOT NULL,
    CHECK (reviewer_id != reviewee_id)
);
"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_agents_reputation ON agents(reputation DESC);",
    "CREATE INDEX IF NOT EXISTS idx_swarms_status ON swarms(status);",
    "CREATE INDEX IF NOT EXISTS idx_swarm_members_agent ON swarm_members(agent_id, status);",
    "CREATE INDEX IF NOT EXISTS idx_reviews_reviewee ON reviews(reviewee_id, created_at);",
]

MIGRATIONS: dict[int, list[str]] = {
    1: [
        AGENTS_DDL,
        SWARMS_DDL,
        SWARM_MEMBERS_DDL,
        REVIEWS_DDL,
        *INDEXES,
    ],
}


def get_current_version(db: sqlite3.Connection) -> int:
    try:
        row = db.execute("SELECT MAX(version) FROM schema_versions").fetchone()
        return row[0] or 0
    except sqlite3.OperationalError:
        return 0


def run_migrations(db: sqlite3.Connection) -> None:
    """Apply all pending migrations to the database."""
    db.execute("PRAGMA journal_mode=WAL")
    db.execute("PRAGMA foreign_keys=ON")

    db.executescript(SCHEMA_VERSIONS_DDL)

    current = get_current_version(db)

    for version in sorted(MIGRATIONS.keys()):
        if version <= current:
            continue
        for statement in MIGRATIONS[version]:
            db.executescript(statement)
        db.execute("INSERT INTO schema_versions (version) VALUES (?)", (version,))
        logger.debug("Applied schema migration %d", version)
    db.commit()
