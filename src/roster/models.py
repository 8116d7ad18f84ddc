from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def new_id() -> str:
    return str(uuid.uuid4())


def normalize_key(value: str) -> str:
    return value.strip().lower()


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    parsed = datetime.fromisoformat(str(value))
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


@dataclass
class Participant:
    id: str
    name: str
    email: str
    college: str
    skill: str
    track: str
    check_in: bool = False
    team_id: str | None = None
    registered_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def email_key(self) -> str:
        return normalize_key(self.email)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "college": self.college,
            "skill": self.skill,
            "track": self.track,
            "check_in": self.check_in,
            "team_id": self.team_id,
            "registered_at": self.registered_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Participant:
        team_id = payload.get("team_id")
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name", "")),
            email=str(payload["email"]),
            college=str(payload.get("college", "")),
            skill=str(payload.get("skill", "")),
            track=str(payload.get("track", "")),
            check_in=bool(payload.get("check_in", False)),
            team_id=str(team_id) if team_id not in (None, "") else None,
            registered_at=_parse_timestamp(payload["registered_at"]),
        )


@dataclass
class Team:
    id: str
    name: str
    members: list[str] = field(default_factory=list)

    @property
    def name_key(self) -> str:
        return normalize_key(self.name)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "members": list(self.members)}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Team:
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            members=[str(email) for email in payload.get("members", [])],
        )
