from __future__ import annotations

import json
import os
import sqlite3
from contextlib import suppress
from pathlib import Path
from typing import Any

from src.roster.models import Participant, Team

SQLITE_SCHEMA = """
CREATE TABLE IF NOT EXISTS participants (
    id TEXT PRIMARY KEY,
    position INTEGER NOT NULL,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    email_normalized TEXT NOT NULL UNIQUE,
    college TEXT NOT NULL DEFAULT '',
    skill TEXT NOT NULL DEFAULT '',
    track TEXT NOT NULL DEFAULT '',
    check_in INTEGER NOT NULL DEFAULT 0 CHECK(check_in IN (0,1)),
    team_id TEXT,
    registered_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_participants_team ON participants(team_id);

CREATE TABLE IF NOT EXISTS teams (
    id TEXT PRIMARY KEY,
    position INTEGER NOT NULL,
    name TEXT NOT NULL,
    name_normalized TEXT NOT NULL UNIQUE,
    members_json TEXT NOT NULL DEFAULT '[]'
);
"""

POSTGRES_SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS participants (
        id TEXT PRIMARY KEY,
        position INTEGER NOT NULL,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        email_normalized TEXT NOT NULL UNIQUE,
        college TEXT NOT NULL DEFAULT '',
        skill TEXT NOT NULL DEFAULT '',
        track TEXT NOT NULL DEFAULT '',
        check_in INTEGER NOT NULL DEFAULT 0 CHECK(check_in IN (0,1)),
        team_id TEXT,
        registered_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_participants_team ON participants(team_id)",
    """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        position INTEGER NOT NULL,
        name TEXT NOT NULL,
        name_normalized TEXT NOT NULL UNIQUE,
        members_json TEXT NOT NULL DEFAULT '[]'
    )
    """,
]


def _is_postgres(conn: Any) -> bool:
    return conn.__class__.__module__.startswith("psycopg")


def _adapt_sql(conn: Any, sql: str) -> str:
    return sql.replace("?", "%s") if _is_postgres(conn) else sql


def _execute(conn: Any, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Any:
    if _is_postgres(conn):
        cur = conn.cursor()
        cur.execute(_adapt_sql(conn, sql), tuple(params))
        return cur
    return conn.execute(_adapt_sql(conn, sql), tuple(params))


def _executemany(conn: Any, sql: str, params_seq: list[tuple[Any, ...]]) -> Any:
    if _is_postgres(conn):
        cur = conn.cursor()
        cur.executemany(_adapt_sql(conn, sql), params_seq)
        return cur
    return conn.executemany(_adapt_sql(conn, sql), params_seq)


def _to_dict(row: Any) -> dict[str, Any]:
    return row if isinstance(row, dict) else dict(row)


def _safe_rollback(conn: Any) -> None:
    """Reset failed DB transactions without masking original errors."""
    with suppress(Exception):
        conn.rollback()


def get_connection(db_path: str) -> Any:
    database_url = os.getenv("DATABASE_URL", "").strip()
    if database_url:
        from psycopg import connect
        from psycopg.rows import dict_row

        return connect(database_url, row_factory=dict_row, autocommit=False)

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


def init_schema(conn: Any) -> None:
    if _is_postgres(conn):
        cur = conn.cursor()
        for statement in POSTGRES_SCHEMA_STATEMENTS:
            cur.execute(statement)
    else:
        conn.executescript(SQLITE_SCHEMA)
    conn.commit()


def _participant_from_row(row: dict[str, Any]) -> Participant:
    return Participant.from_dict({**row, "check_in": bool(int(row["check_in"]))})


def _team_from_row(row: dict[str, Any]) -> Team:
    return Team.from_dict({**row, "members": json.loads(row.get("members_json") or "[]")})


def load_snapshot(conn: Any) -> tuple[list[Participant], list[Team]]:
    participant_rows = _execute(
        conn, "SELECT * FROM participants ORDER BY position ASC"
    ).fetchall()
    team_rows = _execute(conn, "SELECT * FROM teams ORDER BY position ASC").fetchall()
    participants = [_participant_from_row(_to_dict(row)) for row in participant_rows]
    teams = [_team_from_row(_to_dict(row)) for row in team_rows]
    return participants, teams


def save_snapshot(conn: Any, participants: list[Participant], teams: list[Team]) -> None:
    try:
        _execute(conn, "DELETE FROM participants")
        _execute(conn, "DELETE FROM teams")
        if participants:
            _executemany(
                conn,
                """
                INSERT INTO participants (
                    id, position, name, email, email_normalized, college, skill, track,
                    check_in, team_id, registered_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        p.id,
                        position,
                        p.name,
                        p.email,
                        p.email_key,
                        p.college,
                        p.skill,
                        p.track,
                        1 if p.check_in else 0,
                        p.team_id,
                        p.registered_at.isoformat(),
                    )
                    for position, p in enumerate(participants)
                ],
            )
        if teams:
            _executemany(
                conn,
                """
                INSERT INTO teams (id, position, name, name_normalized, members_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (t.id, position, t.name, t.name_key, json.dumps(t.members))
                    for position, t in enumerate(teams)
                ],
            )
        conn.commit()
    except Exception:
        _safe_rollback(conn)
        raise


def count_rows(conn: Any, table: str) -> int:
    if table not in {"participants", "teams"}:
        raise ValueError(f"Unknown table: {table}")
    row = _execute(conn, f"SELECT COUNT(*) AS c FROM {table}").fetchone()
    return int(_to_dict(row)["c"])


class SqlSnapshotStore:
    """Persistence port backed by the participants/teams tables."""

    def __init__(self, conn: Any):
        self.conn = conn

    def load(self) -> tuple[list[Participant], list[Team]]:
        return load_snapshot(self.conn)

    def save(self, participants: list[Participant], teams: list[Team]) -> None:
        save_snapshot(self.conn, participants, teams)
