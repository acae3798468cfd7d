"""Game engine for Mafia Party."""

from game.engine import (
    InvalidActionError,
    new_game,
    check_game_over,
    join_player,
    add_simulated_players,
    update_settings,
    start_game,
    cast_vote,
    tally_votes,
    submit_night_action,
    add_chat_message,
    investigation_result,
    next_phase,
)
from game.roles import assign_roles, clamp_settings, default_settings
from game.rules import Role, Phase, Faction, Gender
from game.state import GameState, GameSettings, GameOutcome, Player, ChatMessage, NightActions

__all__ = [
    "InvalidActionError",
    "new_game",
    "check_game_over",
    "join_player",
    "add_simulated_players",
    "update_settings",
    "start_game",
    "cast_vote",
    "tally_votes",
    "submit_night_action",
    "add_chat_message",
    "investigation_result",
    "next_phase",
    "assign_roles",
    "clamp_settings",
    "default_settings",
    "Role",
    "Phase",
    "Faction",
    "Gender",
    "GameState",
    "GameSettings",
    "GameOutcome",
    "Player",
    "ChatMessage",
    "NightActions",
]
