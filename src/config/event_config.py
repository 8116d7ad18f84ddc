from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

DEFAULT_EVENT_NAME = "OSCode Hackathon"

DEFAULT_TRACKS = [
    "Web Development",
    "AI / Machine Learning",
    "Blockchain",
    "Open Innovation",
]

DEFAULT_SKILLS = ["Beginner", "Intermediate", "Advanced"]


@dataclass(frozen=True)
class EventConfig:
    name: str = DEFAULT_EVENT_NAME
    tracks: list[str] = field(default_factory=lambda: list(DEFAULT_TRACKS))
    skills: list[str] = field(default_factory=lambda: list(DEFAULT_SKILLS))


def _coerce_options(raw: Any, fallback: list[str]) -> list[str]:
    if not isinstance(raw, list):
        return list(fallback)
    options: list[str] = []
    for item in raw:
        value = str(item).strip() if item is not None else ""
        if value and value not in options:
            options.append(value)
    return options or list(fallback)


def load_event_config(config_path: str) -> EventConfig:
    path = Path(config_path)
    if not path.exists():
        return EventConfig()
    payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(payload, dict):
        return EventConfig()
    name = str(payload.get("name") or "").strip() or DEFAULT_EVENT_NAME
    return EventConfig(
        name=name,
        tracks=_coerce_options(payload.get("tracks"), DEFAULT_TRACKS),
        skills=_coerce_options(payload.get("skills"), DEFAULT_SKILLS),
    )
