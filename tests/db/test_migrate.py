from __future__ import annotations

from pathlib import Path

from src.db.migrate import apply_all, discover_migrations
from src.db.sqlite_client import SqlSnapshotStore, get_connection
from src.engine.roster import RosterEngine


def test_discover_migrations_is_ordered():
    assert discover_migrations() == ["001_create_participants", "002_create_teams"]


def test_apply_all_creates_migrations_table(tmp_path: Path):
    db_path = str(tmp_path / "migrate.db")
    assert apply_all(db_path) == ["001_create_participants", "002_create_teams"]
    conn = get_connection(db_path)
    row = conn.execute("SELECT COUNT(*) AS c FROM _migrations").fetchone()
    assert int(row["c"]) == 2
    conn.close()


def test_apply_all_is_idempotent(tmp_path: Path):
    db_path = str(tmp_path / "migrate.db")
    apply_all(db_path)
    assert apply_all(db_path) == []


def test_migrated_schema_supports_the_store(tmp_path: Path):
    db_path = str(tmp_path / "migrate.db")
    apply_all(db_path)
    conn = get_connection(db_path)
    engine = RosterEngine.from_store(SqlSnapshotStore(conn))
    engine.register("Ada", "ada@gmail.com", "", "", "")
    engine.create_team("Alpha")
    assert RosterEngine.from_store(SqlSnapshotStore(conn)).participant_count == 1
    conn.close()
