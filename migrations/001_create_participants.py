from __future__ import annotations

import sqlite3


def up(conn: sqlite3.Connection) -> None:
    conn.executescript(
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
        );
        CREATE INDEX IF NOT EXISTS idx_participants_team ON participants(team_id);
        """
    )
    conn.commit()


def down(conn: sqlite3.Connection) -> None:
    conn.executescript("DROP TABLE IF EXISTS participants;")
    conn.commit()
