from __future__ import annotations

import os
import sqlite3
from collections.abc import Generator
from pathlib import Path

import pytest

from src.db.sqlite_client import get_connection, init_schema
from src.engine.roster import RosterEngine
from src.roster.models import Participant, Team


class RecordingStore:
    """In-memory persistence port that remembers every saved snapshot."""

    def __init__(
        self,
        participants: list[Participant] | None = None,
        teams: list[Team] | None = None,
    ):
        self._participants = participants or []
        self._teams = teams or []
        self.saves: list[tuple[list[dict], list[dict]]] = []

    def load(self) -> tuple[list[Participant], list[Team]]:
        return list(self._participants), list(self._teams)

    def save(self, participants: list[Participant], teams: list[Team]) -> None:
        self.saves.append(([p.to_dict() for p in participants], [t.to_dict() for t in teams]))


@pytest.fixture
def sqlite_db(tmp_path: Path) -> Generator[sqlite3.Connection, None, None]:
    os.environ.pop("DATABASE_URL", None)
    db_path = str(tmp_path / "test.db")
    conn = get_connection(db_path)
    init_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def engine(store: RecordingStore) -> RosterEngine:
    return RosterEngine(store=store)


@pytest.fixture
def seeded_engine(engine: RosterEngine) -> RosterEngine:
    """Three hackers (Ada and Grace checked in) and two empty teams."""
    engine.register(
        "Ada Lovelace", "ada@gmail.com", "Cambridge", "Advanced", "AI / Machine Learning"
    )
    engine.register("Grace Hopper", "grace@gmail.com", "Yale", "Intermediate", "Web Development")
    engine.register("Linus", "linus@gmail.com", "Helsinki", "Beginner", "Web Development")
    engine.toggle_check_in("ada@gmail.com")
    engine.toggle_check_in("grace@gmail.com")
    engine.create_team("Byte Me")
    engine.create_team("Null Pointers")
    return engine

