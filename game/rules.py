"""Game rules and constants for Mafia Party."""

from enum import Enum


class Role(str, Enum):
    """Player roles in the game."""

    VILLAGER = "villager"
    MAFIA = "mafia"
    DETECTIVE = "detective"
    DOCTOR = "doctor"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Phase(str, Enum):
    """Current game phase."""

    LOBBY = "lobby"
    ROLE_ASSIGNMENT = "role_assignment"
    DAY = "day"
    VOTING = "voting"
    NIGHT = "night"
    RESULTS = "results"


class Faction(str, Enum):
    """Winning side."""

    VILLAGERS = "villagers"
    MAFIA = "mafia"


# Roles with a night action, in quota priority order for role assignment
NIGHT_ROLES = (Role.MAFIA, Role.DETECTIVE, Role.DOCTOR)

# Minimum players to start
MIN_PLAYERS = 4

# Probability that a simulated doctor protects itself
DOCTOR_SELF_PROTECT_PROBABILITY = 0.3

# Chat messages a simulated player sees when composing an utterance
CHAT_WINDOW_SIZE = 10

SIMULATED_NAMES = (
    "Alex", "Blake", "Charlie", "Dana", "Ellis",
    "Frankie", "Gray", "Harper", "Indigo", "Jordan",
    "Kelly", "Lee", "Morgan", "Noah", "Parker",
    "Quinn", "Riley", "Sam", "Taylor", "Val",
)


def faction_of(role: Role) -> Faction:
    return Faction.MAFIA if role == Role.MAFIA else Faction.VILLAGERS
