from __future__ import annotations

import re
from collections.abc import Container

from src.roster.errors import DuplicateEmail, InvalidDomain
from src.roster.models import normalize_key

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@gmail\.com$")


def clean_field(value: str | None) -> str:
    return (value or "").strip()


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def check_registration(email: str, existing_keys: Container[str] = frozenset()) -> str:
    """Return the cleaned email or raise the registration error that applies.

    The duplicate check runs first, so re-registering a known address in any
    casing is reported as a duplicate even when that casing breaks the pattern.
    """
    cleaned = clean_field(email)
    if normalize_key(cleaned) in existing_keys:
        raise DuplicateEmail(cleaned)
    if not is_valid_email(cleaned):
        raise InvalidDomain(cleaned)
    return cleaned


def validate_email(email: str, existing_keys: Container[str] = frozenset()) -> str | None:
    try:
        check_registration(email, existing_keys)
    except (DuplicateEmail, InvalidDomain) as exc:
        return str(exc)
    return None
