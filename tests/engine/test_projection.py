from __future__ import annotations

from types import GeneratorType

from src.engine.projection import (
    ViewConfig,
    build_dashboard,
    eligible_participants,
    filter_participants,
    query_participants,
    sort_participants,
    toggle_sort_order,
    tracks_in_use,
)
from src.roster.models import Participant


def _p(name: str, email: str | None = None, track: str = "Web", **kwargs) -> Participant:
    return Participant(
        id=name,
        name=name,
        email=email or f"{name.lower()}@gmail.com",
        college="",
        skill="Beginner",
        track=track,
        **kwargs,
    )


def test_sort_is_case_insensitive_like_locale_compare():
    people = [_p("Bob"), _p("alice")]
    assert [p.name for p in sort_participants(people, "asc")] == ["alice", "Bob"]
    assert [p.name for p in sort_participants(people, "desc")] == ["Bob", "alice"]


def test_sort_ignores_accents():
    people = [_p("Zoe"), _p("Émile"), _p("Dana")]
    assert [p.name for p in sort_participants(people)] == ["Dana", "Émile", "Zoe"]


def test_sort_keeps_ties_in_input_order():
    people = [_p("Sam", "sam1@gmail.com"), _p("Sam", "sam2@gmail.com")]
    assert [p.email for p in sort_participants(people, "asc")] == [
        "sam1@gmail.com",
        "sam2@gmail.com",
    ]
    assert [p.email for p in sort_participants(people, "desc")] == [
        "sam1@gmail.com",
        "sam2@gmail.com",
    ]


def test_names_differing_only_in_case_put_lowercase_first():
    people = [_p("Sam", "sam2@gmail.com"), _p("sam", "sam1@gmail.com")]
    assert [p.name for p in sort_participants(people, "asc")] == ["sam", "Sam"]
    assert [p.name for p in sort_participants(people, "desc")] == ["Sam", "sam"]


def test_unaccented_name_sorts_before_accented_twin():
    people = [_p("Émile", "e1@gmail.com"), _p("Emile", "e2@gmail.com"), _p("Eve")]
    assert [p.name for p in sort_participants(people)] == ["Emile", "Émile", "Eve"]


def test_search_matches_name_or_email_case_insensitively():
    people = [_p("Bob"), _p("Alice", "robot.fan@gmail.com"), _p("Carol")]
    found = query_participants(people, ViewConfig(search_text="BO"))
    assert [p.name for p in found] == ["Alice", "Bob"]


def test_track_filter_is_exact():
    people = [_p("Bob", track="AI"), _p("Alice", track="Web"), _p("Carol", track="ai")]
    found = query_participants(people, ViewConfig(filter_track="AI"))
    assert [p.name for p in found] == ["Bob"]


def test_filter_is_lazy_and_does_not_mutate():
    people = [_p("Bob"), _p("alice")]
    result = filter_participants(people, ViewConfig())
    assert isinstance(result, GeneratorType)
    assert [p.name for p in result] == ["Bob", "alice"]
    assert [p.name for p in people] == ["Bob", "alice"]


def test_toggle_sort_order():
    assert toggle_sort_order("asc") == "desc"
    assert toggle_sort_order("desc") == "asc"


def test_eligible_means_checked_in_and_unassigned():
    people = [
        _p("In", check_in=True),
        _p("Out"),
        _p("Busy", check_in=True, team_id="t1"),
    ]
    assert [p.name for p in eligible_participants(people)] == ["In"]


def test_tracks_in_use_are_unique_and_sorted():
    people = [_p("A", track="Web"), _p("B", track="ai"), _p("C", track="Web"), _p("D", track="")]
    assert tracks_in_use(people) == ["ai", "Web"]


def test_dashboard_counts_rows_and_team_cards(seeded_engine):
    team = next(t for t in seeded_engine.teams if t.name == "Byte Me")
    seeded_engine.add_to_team(team.id, "ada@gmail.com")

    view = build_dashboard(seeded_engine, ViewConfig(sort_order="desc"))

    assert view.total_count == 3
    assert view.checked_in_count == 2
    assert view.assigned_count == 1
    assert [row.participant.name for row in view.rows] == [
        "Linus",
        "Grace Hopper",
        "Ada Lovelace",
    ]
    ada_row = view.rows[-1]
    assert ada_row.team_status == "Assigned"
    assert ada_row.team_name == "Byte Me"
    assert ada_row.initial == "A"
    assert view.rows[0].team_status == "Not Assigned"

    card = view.team_cards[0]
    assert card.member_count == 1
    assert [m.name for m in card.members] == ["Ada Lovelace"]
    assert card.eligible_options == [("grace@gmail.com", "Grace Hopper (Intermediate)")]
    assert view.team_cards[1].eligible_options == card.eligible_options
    assert isinstance(card.eligible, tuple)
    assert card.eligible is not view.team_cards[1].eligible


def test_dashboard_is_recomputed_after_mutation(seeded_engine):
    before = build_dashboard(seeded_engine)
    seeded_engine.register("Zed", "zed@gmail.com", "", "", "")
    after = build_dashboard(seeded_engine)
    assert before.total_count == 3
    assert after.total_count == 4
