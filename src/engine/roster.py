from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from src.engine.registration import check_registration, clean_field
from src.roster.errors import (
    AlreadyAssignedError,
    DuplicateNameError,
    EmptyNameError,
    NotEligibleError,
    NotFoundError,
    PersistenceError,
)
from src.roster.models import Participant, Team, new_id, normalize_key

logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    def load(self) -> tuple[list[Participant], list[Team]]: ...

    def save(self, participants: list[Participant], teams: list[Team]) -> None: ...


class CheckInOutcome(str, Enum):
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CHECKED_OUT_AND_UNASSIGNED = "checked_out_and_unassigned"


@dataclass(frozen=True)
class CheckInResult:
    participant: Participant
    outcome: CheckInOutcome
    team: Team | None = None

    @property
    def message(self) -> str:
        if self.outcome is CheckInOutcome.CHECKED_OUT_AND_UNASSIGNED:
            return f"{self.participant.name} checked out & removed from team."
        if self.outcome is CheckInOutcome.CHECKED_IN:
            return f"{self.participant.name} is now Checked In"
        return f"{self.participant.name} is now Checked Out"


class RosterEngine:
    """Owns the participant and team collections and keeps them mutually consistent.

    Every public mutation validates all of its preconditions before touching state,
    then persists the full snapshot through the store (when one is attached).

    One engine may be shared by several Streamlit sessions, each running on its
    own thread. ``lock`` is held for the whole of every public operation,
    persistence included, so operations and snapshot writes never interleave.
    Callers sharing the store's connection for other queries take it too.

    Read accessors return the engine's live ``Participant`` and ``Team`` objects.
    Treat them as read-only; changing them bypasses the invariants.
    """

    def __init__(
        self,
        participants: list[Participant] | None = None,
        teams: list[Team] | None = None,
        store: SnapshotStore | None = None,
    ):
        self._participants: list[Participant] = list(participants or [])
        self._teams: list[Team] = list(teams or [])
        self._store = store
        self.lock = threading.RLock()
        self._by_email: dict[str, Participant] = {}
        self._email_keys: set[str] = set()
        self._by_team_id: dict[str, Team] = {}
        self._rebuild_indexes()

    @classmethod
    def from_store(cls, store: SnapshotStore) -> RosterEngine:
        participants, teams = store.load()
        engine = cls(participants, teams, store=store)
        logger.info(
            "Loaded roster: %s participants, %s teams", len(participants), len(teams)
        )
        return engine

    def _rebuild_indexes(self) -> None:
        self._by_email = {p.email: p for p in self._participants}
        self._email_keys = {p.email_key for p in self._participants}
        self._by_team_id = {t.id: t for t in self._teams}

    # ---- read access ----

    @property
    def participants(self) -> tuple[Participant, ...]:
        with self.lock:
            return tuple(self._participants)

    @property
    def teams(self) -> tuple[Team, ...]:
        with self.lock:
            return tuple(self._teams)

    @property
    def participant_count(self) -> int:
        with self.lock:
            return len(self._participants)

    @property
    def email_keys(self) -> frozenset[str]:
        """Case-folded emails already registered."""
        with self.lock:
            return frozenset(self._email_keys)

    def get_participant(self, email: str) -> Participant | None:
        with self.lock:
            return self._by_email.get(email)

    def get_team(self, team_id: str) -> Team | None:
        with self.lock:
            return self._by_team_id.get(team_id)

    def _require_participant(self, email: str) -> Participant:
        participant = self._by_email.get(email)
        if participant is None:
            logger.debug("Participant lookup failed for %s", email)
            raise NotFoundError("participant", email)
        return participant

    def _require_team(self, team_id: str) -> Team:
        team = self._by_team_id.get(team_id)
        if team is None:
            logger.debug("Team lookup failed for %s", team_id)
            raise NotFoundError("team", team_id)
        return team

    # ---- persistence ----

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(list(self._participants), list(self._teams))
        except Exception as exc:
            logger.exception("Failed to persist roster snapshot")
            raise PersistenceError(exc) from exc

    # ---- registration ----

    def register(
        self, name: str, email: str, college: str, skill: str, track: str
    ) -> Participant:
        with self.lock:
            cleaned_email = check_registration(email, self._email_keys)
            participant = Participant(
                id=new_id(),
                name=clean_field(name),
                email=cleaned_email,
                college=clean_field(college),
                skill=clean_field(skill),
                track=clean_field(track),
            )
            self._participants.append(participant)
            self._by_email[participant.email] = participant
            self._email_keys.add(participant.email_key)
            logger.info("Registered participant %s (%s)", participant.email, participant.track)
            self._persist()
            return participant

    # ---- check-in ----

    def toggle_check_in(self, email: str) -> CheckInResult:
        with self.lock:
            participant = self._require_participant(email)
            participant.check_in = not participant.check_in
            if participant.check_in:
                logger.info("%s checked in", participant.email)
                result = CheckInResult(participant, CheckInOutcome.CHECKED_IN)
            elif participant.team_id is not None:
                team = self._by_team_id.get(participant.team_id)
                if team is not None:
                    self._drop_member(team, participant.email)
                participant.team_id = None
                logger.warning(
                    "%s checked out and was removed from team %s",
                    participant.email,
                    team.name if team else "<missing>",
                )
                result = CheckInResult(
                    participant, CheckInOutcome.CHECKED_OUT_AND_UNASSIGNED, team
                )
            else:
                logger.info("%s checked out", participant.email)
                result = CheckInResult(participant, CheckInOutcome.CHECKED_OUT)
            self._persist()
            return result

    # ---- teams ----

    def create_team(self, name: str) -> Team:
        cleaned = clean_field(name)
        if not cleaned:
            raise EmptyNameError()
        key = normalize_key(cleaned)
        with self.lock:
            if any(team.name_key == key for team in self._teams):
                raise DuplicateNameError(cleaned)
            team = Team(id=new_id(), name=cleaned)
            self._teams.append(team)
            self._by_team_id[team.id] = team
            logger.info("Created team %s", team.name)
            self._persist()
            return team

    def delete_team(self, team_id: str) -> None:
        with self.lock:
            team = self._require_team(team_id)
            for email in team.members:
                member = self._by_email.get(email)
                if member is not None:
                    member.team_id = None
            self._teams.remove(team)
            del self._by_team_id[team.id]
            logger.info("Deleted team %s, unassigned %s members", team.name, len(team.members))
            self._persist()

    def add_to_team(self, team_id: str, email: str) -> None:
        with self.lock:
            participant = self._require_participant(email)
            team = self._require_team(team_id)
            if not participant.check_in:
                raise NotEligibleError(email)
            if participant.team_id is not None:
                raise AlreadyAssignedError(email)
            participant.team_id = team.id
            team.members.append(participant.email)
            logger.info("Added %s to team %s", participant.email, team.name)
            self._persist()

    def remove_from_team(self, team_id: str, email: str) -> None:
        with self.lock:
            participant = self._require_participant(email)
            team = self._require_team(team_id)
            if participant.team_id != team.id or participant.email not in team.members:
                raise NotFoundError("membership", f"{email} in {team.name}")
            participant.team_id = None
            self._drop_member(team, participant.email)
            logger.info("Removed %s from team %s", participant.email, team.name)
            self._persist()

    @staticmethod
    def _drop_member(team: Team, email: str) -> None:
        team.members[:] = [member for member in team.members if member != email]

    # ---- deletion ----

    def delete_participant(self, email: str) -> None:
        with self.lock:
            participant = self._require_participant(email)
            if participant.team_id is not None:
                team = self._by_team_id.get(participant.team_id)
                if team is not None:
                    self._drop_member(team, participant.email)
                participant.team_id = None
            self._participants.remove(participant)
            del self._by_email[participant.email]
            self._email_keys.discard(participant.email_key)
            logger.info("Deleted participant %s", participant.email)
            self._persist()

    # ---- consistency ----

    def find_violations(self) -> list[str]:
        with self.lock:
            return self._collect_violations()

    def _collect_violations(self) -> list[str]:
        violations: list[str] = []
        seen_emails: set[str] = set()
        seen_ids: set[str] = set()
        for participant in self._participants:
            if participant.email_key in seen_emails:
                violations.append(f"duplicate email {participant.email}")
            seen_emails.add(participant.email_key)
            if participant.id in seen_ids:
                violations.append(f"duplicate participant id {participant.id}")
            seen_ids.add(participant.id)
            if participant.team_id is None:
                continue
            if not participant.check_in:
                violations.append(f"{participant.email} is checked out but assigned")
            team = self._by_team_id.get(participant.team_id)
            if team is None:
                violations.append(f"{participant.email} references missing team")
            elif participant.email not in team.members:
                violations.append(f"{participant.email} missing from {team.name} members")

        seen_names: set[str] = set()
        seen_team_ids: set[str] = set()
        owner: dict[str, str] = {}
        for team in self._teams:
            if team.name_key in seen_names:
                violations.append(f"duplicate team name {team.name}")
            seen_names.add(team.name_key)
            if team.id in seen_team_ids:
                violations.append(f"duplicate team id {team.id}")
            seen_team_ids.add(team.id)
            for email in team.members:
                if email in owner:
                    violations.append(f"{email} listed in {owner[email]} and {team.name}")
                owner.setdefault(email, team.name)
                member = self._by_email.get(email)
                if member is None:
                    violations.append(f"{team.name} lists unknown member {email}")
                elif not member.check_in:
                    violations.append(f"{team.name} lists checked-out member {email}")
                elif member.team_id != team.id:
                    violations.append(f"{team.name} lists {email} assigned elsewhere")
        return violations
