"""Role assignment and quota clamping."""

import dataclasses
import random
from typing import Optional

from game.rules import MIN_PLAYERS, Role
from game.state import GameSettings, Player
from game.utils import shuffle


def default_settings(player_count: int, simulated_player_count: int = 5) -> GameSettings:
    """Suggested role quotas for a roster of the given size."""
    if player_count <= 5:
        mafia = 1
    elif player_count <= 7:
        mafia = 2
    else:
        mafia = player_count // 4
    return GameSettings(
        mafia_count=mafia,
        detective_count=1,
        doctor_count=1,
        simulated_player_count=simulated_player_count,
    )


def clamp_settings(settings: GameSettings, player_count: int) -> GameSettings:
    """
    Clamp quotas so at least one mafia and one villager remain, and the mafia
    start outnumbered (fewer than half the roster).
    Rosters below MIN_PLAYERS are clamped as if MIN_PLAYERS were present.
    """
    n = max(player_count, MIN_PLAYERS)
    mafia = max(1, min(settings.mafia_count, (n - 1) // 2))
    detective = max(0, min(settings.detective_count, n - mafia - 1))
    doctor = max(0, min(settings.doctor_count, n - mafia - detective - 1))
    return dataclasses.replace(
        settings,
        mafia_count=mafia,
        detective_count=detective,
        doctor_count=doctor,
        simulated_player_count=max(0, settings.simulated_player_count),
    )


def assign_roles(
    players: list[Player],
    settings: GameSettings,
    rng: Optional[random.Random] = None,
) -> list[Player]:
    """
    Shuffle, then hand out quotas in order mafia, detective, doctor; the rest are villagers.
    Returns new records in the original join order. Quotas larger than the roster
    are left partly unconsumed.
    """
    remaining = {
        Role.MAFIA: max(0, settings.mafia_count),
        Role.DETECTIVE: max(0, settings.detective_count),
        Role.DOCTOR: max(0, settings.doctor_count),
    }
    roles_by_id: dict[str, Role] = {}
    for player in shuffle(players, rng):
        role = Role.VILLAGER
        for candidate, left in remaining.items():
            if left > 0:
                role = candidate
                remaining[candidate] = left - 1
                break
        roles_by_id[player.id] = role

    return [dataclasses.replace(p, role=roles_by_id[p.id], alive=True) for p in players]
