"""Import a roster exported from the browser version of the manager.

The browser app stored two JSON arrays in ``localStorage`` under the keys
``participants`` and ``teams``. Exports may hold those arrays directly or as the
JSON-encoded strings ``localStorage`` returns.
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser

from src.config.settings import load_settings
from src.db.sqlite_client import SqlSnapshotStore, count_rows, get_connection, init_schema
from src.engine.roster import SnapshotStore
from src.roster.errors import PersistenceError
from src.roster.models import Participant, Team, new_id, normalize_key
from src.utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def _decode_collection(raw: Any) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = json.loads(raw) if raw.strip() else []
    if not isinstance(raw, list):
        raise ValueError("Expected a list of records")
    return [item for item in raw if isinstance(item, dict)]


def _parse_registered_at(value: Any) -> datetime:
    if not value:
        return datetime.now(UTC)
    try:
        parsed = date_parser.isoparse(str(value))
    except (ValueError, OverflowError):
        logger.warning("Unparseable registeredAt %r, using current time", value)
        return datetime.now(UTC)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def _text(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    return str(value).strip() if value is not None else ""


def _unique_id(record: dict[str, Any], fallback: str, used: set[str]) -> str:
    """Legacy ids came from Date.now(), so two records can share one."""
    record_id = _text(record, "id") or fallback
    if record_id in used:
        fresh = new_id()
        logger.warning("Repeated id %s for %s, assigned %s", record_id, fallback, fresh)
        record_id = fresh
    used.add(record_id)
    return record_id


def _convert_participants(records: list[dict[str, Any]]) -> list[Participant]:
    participants: list[Participant] = []
    seen: set[str] = set()
    used_ids: set[str] = set()
    for record in records:
        email = _text(record, "email")
        if not email:
            logger.warning("Skipping participant without email: %r", record.get("name"))
            continue
        if normalize_key(email) in seen:
            logger.warning("Skipping duplicate participant %s", email)
            continue
        seen.add(normalize_key(email))
        participants.append(
            Participant(
                id=_unique_id(record, email, used_ids),
                name=_text(record, "name"),
                email=email,
                college=_text(record, "college"),
                skill=_text(record, "skill"),
                track=_text(record, "track"),
                check_in=bool(record.get("checkIn", False)),
                team_id=None,
                registered_at=_parse_registered_at(record.get("registeredAt")),
            )
        )
    return participants


def _convert_teams(records: list[dict[str, Any]]) -> list[Team]:
    teams: list[Team] = []
    seen: set[str] = set()
    used_ids: set[str] = set()
    for record in records:
        name = _text(record, "name")
        if not name:
            logger.warning("Skipping team without name (id=%s)", record.get("id"))
            continue
        if normalize_key(name) in seen:
            logger.warning("Skipping duplicate team %s", name)
            continue
        seen.add(normalize_key(name))
        members = record.get("members") or []
        teams.append(
            Team(
                id=_unique_id(record, name, used_ids),
                name=name,
                members=[str(email) for email in members if email],
            )
        )
    return teams


def _reconcile_memberships(participants: list[Participant], teams: list[Team]) -> None:
    by_email = {p.email: p for p in participants}
    owner: dict[str, str] = {}
    for team in teams:
        kept: list[str] = []
        for email in team.members:
            member = by_email.get(email)
            if member is None:
                logger.warning("Dropping unknown member %s from %s", email, team.name)
            elif not member.check_in:
                logger.warning("Dropping checked-out member %s from %s", email, team.name)
            elif email in owner:
                logger.warning("Dropping %s from %s, already in another team", email, team.name)
            else:
                owner[email] = team.id
                kept.append(email)
        team.members = kept
    for participant in participants:
        participant.team_id = owner.get(participant.email)


def convert_export(payload: dict[str, Any]) -> tuple[list[Participant], list[Team]]:
    participants = _convert_participants(_decode_collection(payload.get("participants")))
    teams = _convert_teams(_decode_collection(payload.get("teams")))
    _reconcile_memberships(participants, teams)
    return participants, teams


def read_export(path: str) -> dict[str, Any]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Export must be a JSON object with 'participants' and 'teams'")
    return payload


def import_export(path: str, store: SnapshotStore) -> tuple[int, int]:
    participants, teams = convert_export(read_export(path))
    try:
        store.save(participants, teams)
    except Exception as exc:
        raise PersistenceError(exc) from exc
    logger.info("Imported %s participants and %s teams", len(participants), len(teams))
    return len(participants), len(teams)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    parser = argparse.ArgumentParser(description="Import a browser localStorage export.")
    parser.add_argument("export_path")
    parser.add_argument("--db-path", default=settings.sqlite_db_path)
    args = parser.parse_args()

    conn = get_connection(args.db_path)
    init_schema(conn)
    try:
        import_export(args.export_path, SqlSnapshotStore(conn))
        logger.info(
            "Database now holds %s participants and %s teams",
            count_rows(conn, "participants"),
            count_rows(conn, "teams"),
        )
    except (OSError, ValueError) as exc:
        logger.error("Import failed: %s", exc)
        raise SystemExit(1) from exc
    finally:
        conn.close()


if __name__ == "__main__":
    main()
