from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal

from src.engine.roster import RosterEngine
from src.roster.models import Participant, Team

SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class ViewConfig:
    search_text: str = ""
    filter_track: str = ""
    sort_order: SortOrder = "asc"


@dataclass(frozen=True)
class ParticipantRow:
    participant: Participant
    team_name: str | None

    @property
    def team_status(self) -> str:
        return "Assigned" if self.participant.team_id else "Not Assigned"

    @property
    def initial(self) -> str:
        return self.participant.name[:1].upper()


@dataclass(frozen=True)
class TeamCard:
    """One team with its resolved members and the hackers that could join it.

    ``team`` and the participants are the engine's live objects; read them only.
    """

    team: Team
    members: tuple[Participant, ...]
    eligible: tuple[Participant, ...]

    @property
    def member_count(self) -> int:
        return len(self.team.members)

    @property
    def eligible_options(self) -> list[tuple[str, str]]:
        """(email, label) pairs for the add-member picker."""
        return [(p.email, f"{p.name} ({p.skill})") for p in self.eligible]


@dataclass(frozen=True)
class DashboardView:
    total_count: int
    checked_in_count: int
    assigned_count: int
    rows: list[ParticipantRow] = field(default_factory=list)
    team_cards: list[TeamCard] = field(default_factory=list)


def name_sort_key(name: str) -> tuple[str, str, str]:
    """Base letters first, then accents, then case with lowercase ahead."""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold(), name.casefold(), name.swapcase()


def matches(participant: Participant, config: ViewConfig) -> bool:
    needle = config.search_text.lower()
    matches_search = needle in participant.name.lower() or needle in participant.email.lower()
    matches_track = config.filter_track == "" or participant.track == config.filter_track
    return matches_search and matches_track


def filter_participants(
    participants: Iterable[Participant], config: ViewConfig
) -> Iterator[Participant]:
    return (p for p in participants if matches(p, config))


def sort_participants(
    participants: Iterable[Participant], sort_order: SortOrder = "asc"
) -> list[Participant]:
    return sorted(
        participants,
        key=lambda p: name_sort_key(p.name),
        reverse=sort_order == "desc",
    )


def query_participants(
    participants: Iterable[Participant], config: ViewConfig
) -> list[Participant]:
    return sort_participants(filter_participants(participants, config), config.sort_order)


def toggle_sort_order(sort_order: SortOrder) -> SortOrder:
    return "desc" if sort_order == "asc" else "asc"


def eligible_participants(participants: Iterable[Participant]) -> list[Participant]:
    return [p for p in participants if p.check_in and p.team_id is None]


def tracks_in_use(participants: Iterable[Participant]) -> list[str]:
    return sorted({p.track for p in participants if p.track}, key=name_sort_key)


def build_team_cards(engine: RosterEngine) -> list[TeamCard]:
    with engine.lock:
        eligible = eligible_participants(engine.participants)
        cards: list[TeamCard] = []
        for team in engine.teams:
            members = tuple(
                member
                for member in (engine.get_participant(email) for email in team.members)
                if member is not None
            )
            cards.append(TeamCard(team=team, members=members, eligible=tuple(eligible)))
        return cards


def build_dashboard(engine: RosterEngine, config: ViewConfig | None = None) -> DashboardView:
    config = config or ViewConfig()
    with engine.lock:
        participants = engine.participants
        rows = []
        for participant in query_participants(participants, config):
            team = engine.get_team(participant.team_id) if participant.team_id else None
            rows.append(
                ParticipantRow(participant=participant, team_name=team.name if team else None)
            )
        return DashboardView(
            total_count=len(participants),
            checked_in_count=sum(1 for p in participants if p.check_in),
            assigned_count=sum(1 for p in participants if p.team_id is not None),
            rows=rows,
            team_cards=build_team_cards(engine),
        )
