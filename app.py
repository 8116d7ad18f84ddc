from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import streamlit as st

from src.config.event_config import load_event_config
from src.config.settings import ensure_runtime_dirs, load_settings, validate_settings
from src.db.sqlite_client import SqlSnapshotStore, get_connection, init_schema
from src.engine.projection import (
    DashboardView,
    TeamCard,
    ViewConfig,
    build_dashboard,
    toggle_sort_order,
    tracks_in_use,
)
from src.engine.registration import validate_email
from src.engine.roster import RosterEngine
from src.roster.errors import PersistenceError, RosterError
from src.utils.health import readiness
from src.utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)

VIEWS = {
    "landing": "Home",
    "register": "Register",
    "dashboard": "Dashboard",
    "teams": "Teams",
}


@st.cache_resource
def get_runtime() -> dict[str, Any]:
    settings = load_settings()
    configure_logging(settings.log_level)
    ensure_runtime_dirs(settings)
    errors = validate_settings(settings)
    conn: Any | None = None
    engine: RosterEngine | None = None
    try:
        conn = get_connection(settings.sqlite_db_path)
        init_schema(conn)
        engine = RosterEngine.from_store(SqlSnapshotStore(conn))
    except Exception as exc:
        logger.exception("Roster startup failed")
        errors.append(f"Database initialization failed: {exc}")
    return {
        "settings": settings,
        "event": load_event_config(settings.event_config_path),
        "conn": conn,
        "engine": engine,
        "errors": errors,
    }


def init_state() -> None:
    defaults = {
        "current_view": "landing",
        "search_text": "",
        "filter_track": "",
        "sort_order": "asc",
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def _engine() -> RosterEngine:
    return get_runtime()["engine"]


def _switch_view(view: str) -> None:
    st.session_state.current_view = view
    st.rerun()


def run_action(action: Callable[[], Any], success: Callable[[Any], str] | str) -> bool:
    """Run one engine operation and report the outcome as a toast."""
    try:
        result = action()
    except PersistenceError as exc:
        st.toast(str(exc), icon="⚠️")
        return True
    except RosterError as exc:
        st.toast(str(exc), icon="🚫")
        return False
    st.toast(success(result) if callable(success) else success, icon="✅")
    return True


def confirm_button(label: str, prompt: str, key: str) -> bool:
    if not get_runtime()["settings"].confirm_destructive:
        return st.button(label, key=key)
    with st.popover(label):
        st.write(prompt)
        return st.button("Yes, continue", key=f"{key}_confirm")


def render_nav() -> None:
    event = get_runtime()["event"]
    st.title(event.name)
    cols = st.columns(len(VIEWS))
    for col, (view, label) in zip(cols, VIEWS.items()):
        with col:
            if st.button(label, key=f"nav_{view}", use_container_width=True):
                _switch_view(view)


def render_landing() -> None:
    engine = _engine()
    st.subheader("Register, check in, build your team.")
    st.metric("Registered hackers", engine.participant_count)
    if st.button("Register now"):
        _switch_view("register")


def render_register() -> None:
    engine = _engine()
    event = get_runtime()["event"]
    st.subheader("Registration")
    with st.form("register_form", clear_on_submit=True):
        name = st.text_input("Full name")
        email = st.text_input("Email (@gmail.com only)")
        college = st.text_input("College")
        skill = st.selectbox("Skill level", event.skills)
        track = st.selectbox("Track", event.tracks)
        submitted = st.form_submit_button("Register")
    if submitted:
        problem = validate_email(email, engine.email_keys)
        if problem:
            st.toast(problem, icon="🚫")
            return
        ok = run_action(
            lambda: engine.register(name, email, college, skill, track),
            "Registration Successful!",
        )
        if ok:
            _switch_view("dashboard")


def _render_participant_table(view: DashboardView) -> None:
    engine = _engine()
    if not view.rows:
        st.info("No participants match the current filters.")
        return
    for row in view.rows:
        p = row.participant
        name_col, track_col, check_col, team_col, action_col = st.columns([3, 2, 1, 2, 1])
        with name_col:
            st.markdown(f"`{row.initial}` **{p.name}**  \n{p.email}")
        with track_col:
            st.markdown(f"{p.track}  \n`{p.skill}`")
        with check_col:
            label = "In" if p.check_in else "Out"
            if st.button(label, key=f"checkin_{p.id}"):
                if run_action(lambda: engine.toggle_check_in(p.email), lambda r: r.message):
                    st.rerun()
        with team_col:
            status = row.team_status
            st.write(f"{status}: {row.team_name}" if row.team_name else status)
        with action_col:
            if confirm_button(
                "Remove", "Are you sure you want to remove this participant?", f"del_{p.id}"
            ):
                if run_action(lambda: engine.delete_participant(p.email), "Participant removed"):
                    st.rerun()


def render_dashboard() -> None:
    engine = _engine()
    st.subheader("Dashboard")
    search_col, track_col, sort_col = st.columns([3, 2, 1])
    with search_col:
        st.session_state.search_text = st.text_input(
            "Search by name or email", value=st.session_state.search_text
        )
    with track_col:
        options = ["", *tracks_in_use(engine.participants)]
        current = st.session_state.filter_track
        st.session_state.filter_track = st.selectbox(
            "Track",
            options,
            index=options.index(current) if current in options else 0,
            format_func=lambda value: value or "All tracks",
        )
    with sort_col:
        arrow = "A-Z" if st.session_state.sort_order == "asc" else "Z-A"
        if st.button(f"Sort {arrow}"):
            st.session_state.sort_order = toggle_sort_order(st.session_state.sort_order)
            st.rerun()

    view = build_dashboard(
        engine,
        ViewConfig(
            search_text=st.session_state.search_text,
            filter_track=st.session_state.filter_track,
            sort_order=st.session_state.sort_order,
        ),
    )
    total, checked, assigned = st.columns(3)
    total.metric("Total", view.total_count)
    checked.metric("Checked in", view.checked_in_count)
    assigned.metric("In a team", view.assigned_count)
    _render_participant_table(view)


def _render_team_card(card: TeamCard) -> None:
    engine = _engine()
    team = card.team
    with st.container(border=True):
        header, delete_col = st.columns([4, 1])
        with header:
            st.markdown(f"#### {team.name}")
        with delete_col:
            if confirm_button(
                "Delete", "Delete this team? All members will be unassigned.", f"team_{team.id}"
            ):
                if run_action(lambda: engine.delete_team(team.id), "Team deleted."):
                    st.rerun()
        st.caption(f"MEMBERS ({card.member_count})")
        if not card.members:
            st.caption("No members assigned yet.")
        for member in card.members:
            name_col, remove_col = st.columns([4, 1])
            name_col.write(member.name)
            if remove_col.button("✕", key=f"rm_{team.id}_{member.id}"):
                if run_action(
                    lambda: engine.remove_from_team(team.id, member.email),
                    f"{member.name} removed from team.",
                ):
                    st.rerun()
        options = card.eligible_options
        labels = dict(options)
        choice = st.selectbox(
            "Add member",
            [""] + [email for email, _ in options],
            key=f"select_{team.id}",
            format_func=lambda email: labels.get(email, "Select Hacker...")
            if email
            else ("Select Hacker..." if options else "No eligible hackers"),
        )
        if st.button("Add", key=f"add_{team.id}"):
            if not choice:
                st.toast("Please select a participant.", icon="⚠️")
            elif run_action(
                lambda: engine.add_to_team(team.id, choice),
                f"{labels.get(choice, choice)} added to {team.name}",
            ):
                st.rerun()


def render_teams() -> None:
    engine = _engine()
    st.subheader("Teams")
    with st.form("team_form", clear_on_submit=True):
        team_name = st.text_input("New team name")
        created = st.form_submit_button("Create team")
    if created and run_action(
        lambda: engine.create_team(team_name), lambda team: f'Team "{team.name}" created!'
    ):
        st.rerun()

    cards = build_dashboard(engine).team_cards
    if not cards:
        st.info("No teams yet. Create one above.")
        return
    columns = st.columns(3)
    for idx, card in enumerate(cards):
        with columns[idx % 3]:
            _render_team_card(card)


def main() -> None:
    st.set_page_config(
        page_title="HackRoster",
        page_icon=":busts_in_silhouette:",
        layout="wide",
        initial_sidebar_state="collapsed",
    )
    init_state()
    runtime = get_runtime()
    if runtime["errors"]:
        st.error("Startup validation failed.")
        for error in runtime["errors"]:
            st.write(f"- {error}")
        return
    status = readiness(runtime["conn"], runtime["engine"])
    if not status["ok"]:
        st.error("Readiness check failed.")
        st.json(status)
        return
    if status["dependencies"]["roster"].startswith("degraded"):
        st.warning("Stored roster has inconsistencies. Review teams before editing.")

    render_nav()
    view = st.session_state.current_view
    if view == "register":
        render_register()
    elif view == "dashboard":
        render_dashboard()
    elif view == "teams":
        render_teams()
    else:
        render_landing()


if __name__ == "__main__":
    main()
