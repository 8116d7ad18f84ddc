from __future__ import annotations


class RosterError(ValueError):
    """Base class for recoverable, user-facing roster errors."""


class InvalidDomain(RosterError):
    def __init__(self, email: str = ""):
        self.email = email
        super().__init__("Registration restricted to @gmail.com addresses only.")


class DuplicateEmail(RosterError):
    def __init__(self, email: str = ""):
        self.email = email
        super().__init__("This Email ID is already registered!")


class EmptyNameError(RosterError):
    def __init__(self):
        super().__init__("Team name cannot be empty!")


class DuplicateNameError(RosterError):
    def __init__(self, name: str = ""):
        self.name = name
        super().__init__("Team name already exists!")


class NotEligibleError(RosterError):
    def __init__(self, email: str = ""):
        self.email = email
        super().__init__("Participant must be checked-in first!")


class AlreadyAssignedError(RosterError):
    def __init__(self, email: str = ""):
        self.email = email
        super().__init__("Participant is already in a team!")


class NotFoundError(RosterError):
    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.capitalize()} not found ({key})")


class PersistenceError(RosterError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Changes applied but could not be saved: {cause}")
