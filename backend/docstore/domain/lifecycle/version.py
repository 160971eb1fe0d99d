from typing import Set

VERSION_STATUSES = ("draft", "published", "archived")

# Explicit allowed state transitions
ALLOWED_VERSION_TRANSITIONS: dict[str, Set[str]] = {
    "draft": {"published"},
    "published": {"archived"},
    "archived": set(),  # terminal
}


def assert_known_status(status: str) -> None:
    if status not in VERSION_STATUSES:
        raise ValueError(
            f"Unknown version status '{status}'. Expected one of: {', '.join(VERSION_STATUSES)}"
        )


def is_allowed_transition(*, from_status: str, to_status: str) -> bool:
    """
    Guards version lifecycle transitions.
    Single source of truth for status changes.
    """
    return to_status in ALLOWED_VERSION_TRANSITIONS.get(from_status, set())
