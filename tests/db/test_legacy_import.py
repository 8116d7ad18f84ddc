from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.db.legacy_import import convert_export, import_export, main
from src.db.sqlite_client import SqlSnapshotStore, get_connection, init_schema
from src.engine.roster import RosterEngine
from src.roster.errors import PersistenceError

LEGACY_PARTICIPANTS = [
    {
        "id": 1709280000000,
        "name": "Ada",
        "email": "ada@gmail.com",
        "college": "Cambridge",
        "skill": "Advanced",
        "track": "AI / Machine Learning",
        "teamId": 1709290000000,
        "checkIn": True,
        "registeredAt": "2024-03-01T08:00:00.000Z",
    },
    {
        "id": 1709280000001,
        "name": "Bob",
        "email": "bob@gmail.com",
        "college": "MIT",
        "skill": "Beginner",
        "track": "Web Development",
        "teamId": 1709290000000,
        "checkIn": False,
        "registeredAt": "not a date",
    },
    {
        "id": 1709280000002,
        "name": "Ada again",
        "email": "ADA@gmail.com",
        "checkIn": True,
        "teamId": None,
    },
]

LEGACY_TEAMS = [
    {
        "id": 1709290000000,
        "name": "Byte Me",
        "members": ["ada@gmail.com", "bob@gmail.com", "ghost@gmail.com"],
    },
    {"id": 1709290000001, "name": "byte me", "members": []},
    {"id": 1709290000002, "name": "Second", "members": ["ada@gmail.com"]},
]


def test_convert_maps_fields_and_sanitises():
    participants, teams = convert_export(
        {"participants": LEGACY_PARTICIPANTS, "teams": LEGACY_TEAMS}
    )
    assert [p.email for p in participants] == ["ada@gmail.com", "bob@gmail.com"]
    ada, bob = participants
    assert ada.id == "1709280000000"
    assert ada.registered_at.year == 2024
    assert ada.registered_at.utcoffset() is not None
    assert ada.team_id == "1709290000000"
    assert bob.check_in is False
    assert bob.team_id is None
    assert bob.registered_at.tzinfo is not None

    assert [t.name for t in teams] == ["Byte Me", "Second"]
    assert teams[0].members == ["ada@gmail.com"]
    assert teams[1].members == []
    assert RosterEngine(participants, teams).find_violations() == []


def test_convert_accepts_local_storage_strings():
    payload = {
        "participants": json.dumps(LEGACY_PARTICIPANTS[:1]),
        "teams": json.dumps(LEGACY_TEAMS[:1]),
    }
    participants, teams = convert_export(payload)
    assert len(participants) == 1
    assert teams[0].members == ["ada@gmail.com"]


def test_convert_handles_missing_keys():
    assert convert_export({}) == ([], [])


def test_convert_rejects_non_list_collections():
    with pytest.raises(ValueError):
        convert_export({"participants": {"email": "x@gmail.com"}})


def test_import_export_writes_through_store(tmp_path: Path, sqlite_db):
    export_path = tmp_path / "export.json"
    export_path.write_text(
        json.dumps({"participants": LEGACY_PARTICIPANTS, "teams": LEGACY_TEAMS}),
        encoding="utf-8",
    )
    counts = import_export(str(export_path), SqlSnapshotStore(sqlite_db))
    assert counts == (2, 2)
    engine = RosterEngine.from_store(SqlSnapshotStore(sqlite_db))
    assert engine.get_participant("ada@gmail.com").check_in is True


def test_cli_exits_non_zero_for_unreadable_export(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    db_path = str(tmp_path / "cli.db")
    monkeypatch.setattr(
        "sys.argv", ["legacy_import", str(tmp_path / "missing.json"), "--db-path", db_path]
    )
    with pytest.raises(SystemExit) as excinfo:
        main()
    assert excinfo.value.code == 1


def test_cli_imports_export(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    export_path = tmp_path / "export.json"
    export_path.write_text(json.dumps({"participants": LEGACY_PARTICIPANTS}), encoding="utf-8")
    db_path = str(tmp_path / "cli.db")
    monkeypatch.setattr("sys.argv", ["legacy_import", str(export_path), "--db-path", db_path])
    main()
    conn = get_connection(db_path)
    init_schema(conn)
    assert RosterEngine.from_store(SqlSnapshotStore(conn)).participant_count == 2
    conn.close()


def test_repeated_participant_ids_get_fresh_ids(tmp_path: Path, sqlite_db):
    export_path = tmp_path / "export.json"
    export_path.write_text(
        json.dumps(
            {
                "participants": [
                    {"id": 1700000000000, "name": "A", "email": "a@gmail.com"},
                    {"id": 1700000000000, "name": "B", "email": "b@gmail.com"},
                ]
            }
        ),
        encoding="utf-8",
    )
    assert import_export(str(export_path), SqlSnapshotStore(sqlite_db)) == (2, 0)
    engine = RosterEngine.from_store(SqlSnapshotStore(sqlite_db))
    first, second = engine.participants
    assert first.id == "1700000000000"
    assert second.id != first.id
    assert second.email == "b@gmail.com"


def test_repeated_team_ids_keep_memberships_apart():
    participants, teams = convert_export(
        {
            "participants": [
                {"id": 1, "name": "A", "email": "a@gmail.com", "checkIn": True},
                {"id": 2, "name": "B", "email": "b@gmail.com", "checkIn": True},
            ],
            "teams": [
                {"id": 9, "name": "X", "members": ["a@gmail.com"]},
                {"id": 9, "name": "Y", "members": ["b@gmail.com"]},
            ],
        }
    )
    x, y = teams
    assert x.id == "9"
    assert y.id != x.id
    assert [p.team_id for p in participants] == [x.id, y.id]
    assert RosterEngine(participants, teams).find_violations() == []


def test_store_failure_surfaces_as_persistence_error(tmp_path: Path, mocker):
    export_path = tmp_path / "export.json"
    export_path.write_text(json.dumps({"participants": LEGACY_PARTICIPANTS}), encoding="utf-8")
    store = mocker.Mock()
    store.save.side_effect = RuntimeError("UNIQUE constraint failed")
    with pytest.raises(PersistenceError):
        import_export(str(export_path), store)
