"""Role-based capability table.

Routes ask ``is_allowed(role, capability)`` instead of comparing role
strings.
"""

from enum import Enum

from smashqueue.models.player import Role


class Capability(str, Enum):
    # Queue
    VIEW_QUEUE = "view_queue"
    JOIN_QUEUE = "join_queue"
    CALL_QUEUE = "call_queue"

    # Matches
    MANAGE_MATCHES = "manage_matches"
    VIEW_ALL_MATCHES = "view_all_matches"

    # Directory
    VIEW_ANY_PROFILE = "view_any_profile"
    MANAGE_PLAYERS = "manage_players"


_PLAYER_CAPABILITIES: frozenset[Capability] = frozenset({
    Capability.VIEW_QUEUE,
    Capability.JOIN_QUEUE,
})

_ORGANIZER_CAPABILITIES: frozenset[Capability] = _PLAYER_CAPABILITIES | {
    Capability.CALL_QUEUE,
    Capability.MANAGE_MATCHES,
    Capability.VIEW_ANY_PROFILE,
    Capability.VIEW_ALL_MATCHES,
}

# Role to capabilities mapping
ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.PLAYER: _PLAYER_CAPABILITIES,
    Role.ORGANIZER: _ORGANIZER_CAPABILITIES,
    Role.ADMIN: _ORGANIZER_CAPABILITIES | {Capability.MANAGE_PLAYERS},
}


def _as_role(role: Role | str) -> Role | None:
    try:
        return Role(role)
    except ValueError:
        return None


def is_allowed(role: Role | str, capability: Capability) -> bool:
    """Check if a role grants a capability. Unknown roles get nothing."""
    resolved = _as_role(role)
    if resolved is None:
        return False
    return capability in ROLE_CAPABILITIES[resolved]


def get_role_capabilities(role: Role | str) -> frozenset[Capability]:
    """Get all capabilities for a role."""
    resolved = _as_role(role)
    if resolved is None:
        return frozenset()
    return ROLE_CAPABILITIES[resolved]
