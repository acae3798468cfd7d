"""Game engine: pure state transitions, no LLM."""

import copy
import dataclasses
import random
import time
from typing import Optional

from game.roles import assign_roles, clamp_settings
from game.rules import MIN_PLAYERS, SIMULATED_NAMES, Faction, Gender, Phase, Role
from game.state import (
    ChatMessage,
    GameOutcome,
    GameSettings,
    GameState,
    Investigation,
    NightActions,
    Player,
)
from game.utils import generate_id, shuffle

MAX_CHAT_LENGTH = 500


class InvalidActionError(ValueError):
    """Raised when an action is not legal in the current state."""


def _log(state: GameState, message: str) -> None:
    """Append message to the event log (mutates state)."""
    state.event_log.append(message)


def _faction_label(winner: Optional[Faction]) -> str:
    return "The Mafia" if winner == Faction.MAFIA else "The Villagers"


def new_game(settings: Optional[GameSettings] = None) -> GameState:
    """Fresh lobby with an empty roster."""
    return GameState(settings=copy.deepcopy(settings) if settings else GameSettings())


def check_game_over(players: list[Player]) -> GameOutcome:
    """
    Mafia win when alive mafia >= alive others (0 == 0 included).
    Villagers win when no mafia is alive. Otherwise the game goes on.
    """
    alive = [p for p in players if p.alive]
    mafia_alive = sum(1 for p in alive if p.role == Role.MAFIA)
    village_alive = len(alive) - mafia_alive
    if mafia_alive >= village_alive:
        return GameOutcome(over=True, winner=Faction.MAFIA)
    if mafia_alive == 0:
        return GameOutcome(over=True, winner=Faction.VILLAGERS)
    return GameOutcome(over=False)


def _require_phase(state: GameState, *phases: Phase) -> None:
    if state.phase not in phases:
        allowed = ", ".join(p.value for p in phases)
        raise InvalidActionError(f"Action only allowed in {allowed}; phase is {state.phase.value}")


def _require_alive(state: GameState, player_id: str, what: str = "Player") -> Player:
    player = state.get_player(player_id)
    if player is None:
        raise InvalidActionError(f"{what} {player_id} not found")
    if not player.alive:
        raise InvalidActionError(f"{what} {player.name} is not alive")
    return player


def join_player(
    state: GameState,
    name: str,
    gender: Gender = Gender.MALE,
    simulated: bool = False,
    player_id: Optional[str] = None,
) -> GameState:
    """Add a player to the lobby. The first player to join becomes host. Returns new state."""
    _require_phase(state, Phase.LOBBY)
    name = (name or "").strip()
    if not name:
        raise InvalidActionError("Player name is required")
    taken = {p.id for p in state.players}
    if player_id is None:
        player_id = generate_id(taken)
    elif player_id in taken:
        raise InvalidActionError(f"Player id {player_id} already taken")
    state = copy.deepcopy(state)
    state.players.append(
        Player(
            id=player_id,
            name=name,
            gender=gender,
            is_host=not state.players,
            is_simulated=simulated,
        )
    )
    return state


def add_simulated_players(
    state: GameState,
    count: int,
    rng: Optional[random.Random] = None,
) -> GameState:
    """Add up to count simulated players with unused names from the pool. Returns new state."""
    _require_phase(state, Phase.LOBBY)
    rng = rng or random.Random()
    used = {p.name.lower() for p in state.players}
    names = [n for n in shuffle(SIMULATED_NAMES, rng) if n.lower() not in used]
    for name in names[: max(0, count)]:
        gender = Gender.MALE if rng.random() > 0.5 else Gender.FEMALE
        state = join_player(state, name, gender, simulated=True)
    state = copy.deepcopy(state)
    state.settings = dataclasses.replace(
        state.settings,
        simulated_player_count=sum(1 for p in state.players if p.is_simulated),
    )
    return state


def update_settings(state: GameState, settings: GameSettings) -> GameState:
    """Replace lobby settings. Quotas are clamped later, when the game starts."""
    _require_phase(state, Phase.LOBBY)
    counts = (
        settings.mafia_count,
        settings.detective_count,
        settings.doctor_count,
        settings.simulated_player_count,
    )
    if any(c < 0 for c in counts):
        raise InvalidActionError("Settings must be non-negative")
    state = copy.deepcopy(state)
    state.settings = copy.deepcopy(settings)
    return state


def start_game(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """Lobby -> role assignment: clamp quotas and deal roles. Returns new state."""
    _require_phase(state, Phase.LOBBY)
    if len(state.players) < MIN_PLAYERS:
        raise InvalidActionError(f"At least {MIN_PLAYERS} players required")
    state = copy.deepcopy(state)
    state.settings = clamp_settings(state.settings, len(state.players))
    state.players = assign_roles(state.players, state.settings, rng)
    state.phase = Phase.ROLE_ASSIGNMENT
    _log(state, "Game has started! Roles have been assigned.")
    return state


def cast_vote(state: GameState, voter_id: str, target_id: str) -> GameState:
    """
    Record voter's vote for target, dropping any earlier vote by the same voter.
    Returns new state.
    """
    _require_phase(state, Phase.VOTING)
    _require_alive(state, voter_id, "Voter")
    _require_alive(state, target_id, "Target")
    state = copy.deepcopy(state)
    for voters in state.votes.values():
        if voter_id in voters:
            voters.remove(voter_id)
    state.votes.setdefault(target_id, []).append(voter_id)
    return state


def tally_votes(votes: dict[str, list[str]]) -> Optional[str]:
    """
    Target with the most distinct voters. Scans in insertion order and only a
    strictly higher count replaces the leader, so ties go to the earlier target.
    None when no votes were cast.
    """
    max_votes = 0
    eliminated_id: Optional[str] = None
    for target_id, voters in votes.items():
        count = len(set(voters))
        if count > max_votes:
            max_votes = count
            eliminated_id = target_id
    return eliminated_id


_NIGHT_SLOTS = {
    Role.MAFIA: "mafia_votes",
    Role.DETECTIVE: "detective_targets",
    Role.DOCTOR: "doctor_targets",
}


def submit_night_action(state: GameState, role: Role, actor_id: str, target_id: str) -> GameState:
    """Record a night action for actor; a later submission by the same actor replaces it."""
    _require_phase(state, Phase.NIGHT)
    role = Role(role)
    slot = _NIGHT_SLOTS.get(role)
    if slot is None:
        raise InvalidActionError(f"Role {role.value} has no night action")
    actor = _require_alive(state, actor_id, "Actor")
    if actor.role != role:
        raise InvalidActionError(f"{actor.name} is not {role.value}")
    _require_alive(state, target_id, "Target")
    state = copy.deepcopy(state)
    submissions: dict[str, str] = getattr(state.night_actions, slot)
    submissions.pop(actor_id, None)
    submissions[actor_id] = target_id
    return state


def add_chat_message(
    state: GameState,
    player_id: str,
    content: str,
    timestamp: Optional[int] = None,
) -> GameState:
    """Append a chat line from a living player and remember it as their last message."""
    player = _require_alive(state, player_id)
    content = (content or "").strip()[:MAX_CHAT_LENGTH]
    if not content:
        raise InvalidActionError("Message is empty")
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    state = copy.deepcopy(state)
    state.chat.append(
        ChatMessage(
            player_id=player.id,
            player_name=player.name,
            content=content,
            timestamp=timestamp,
        )
    )
    state.replace_player(dataclasses.replace(player, last_message=content))
    return state


def investigation_result(
    state: GameState,
    detective_id: str,
    day: Optional[int] = None,
) -> Optional[bool]:
    """
    Whether the detective's investigated player is mafia. Uses the pending
    night submission while it is still night, else the latest recorded
    investigation (or the one from the given day). None if nothing to report.
    """
    target_id: Optional[str] = None
    if day is None and state.phase == Phase.NIGHT:
        target_id = state.night_actions.detective_targets.get(detective_id)
    if target_id is None:
        for inv in reversed(state.investigations):
            if inv.detective_id == detective_id and (day is None or inv.day == day):
                target_id = inv.target_id
                break
    if target_id is None:
        return None
    target = state.get_player(target_id)
    return target is not None and target.role == Role.MAFIA


def known_mafia_ids(state: GameState, detective_id: str) -> list[str]:
    """Ids of players the detective's recorded investigations showed to be mafia."""
    found: list[str] = []
    for inv in state.investigations:
        if inv.detective_id != detective_id or inv.target_id in found:
            continue
        target = state.get_player(inv.target_id)
        if target and target.role == Role.MAFIA:
            found.append(target.id)
    return found


def _eliminate(state: GameState, player_id: str) -> Optional[Player]:
    """Mark player dead (mutates state) and return the dead record."""
    player = state.get_player(player_id)
    if player is None or not player.alive:
        return None
    dead = dataclasses.replace(player, alive=False)
    state.replace_player(dead)
    return dead


def _finish_if_over(state: GameState) -> bool:
    """Evaluate the win condition; on game over move to results (mutates state)."""
    outcome = check_game_over(state.players)
    state.game_over = outcome.over
    state.winner = outcome.winner
    if outcome.over:
        state.phase = Phase.RESULTS
        _log(state, f"Game over! {_faction_label(outcome.winner)} won!")
    return outcome.over


def _resolve_voting(state: GameState) -> GameState:
    eliminated_id = tally_votes(state.votes)
    eliminated = _eliminate(state, eliminated_id) if eliminated_id else None
    state.last_eliminated = eliminated
    if eliminated:
        _log(state, f"{eliminated.name} was eliminated. They were a {eliminated.role.value}.")
    else:
        _log(state, "No one was eliminated.")
    if _finish_if_over(state):
        return state
    state.phase = Phase.NIGHT
    state.night_actions = NightActions()
    _log(state, "Night has fallen. Everyone close your eyes...")
    return state


def _resolve_night(state: GameState) -> GameState:
    actions = state.night_actions
    for detective_id, target_id in actions.detective_targets.items():
        state.investigations.append(
            Investigation(day=state.day_count, detective_id=detective_id, target_id=target_id)
        )

    killed: Optional[Player] = None
    target_id = actions.mafia_target_id
    if target_id and not actions.is_protected(target_id):
        killed = _eliminate(state, target_id)
    state.last_eliminated = killed
    state.night_actions = NightActions()
    if killed:
        _log(state, f"{killed.name} was killed by the Mafia.")
    else:
        _log(state, "No one was killed during the night.")
    if _finish_if_over(state):
        return state
    state.phase = Phase.DAY
    state.day_count += 1
    _log(state, f"Day {state.day_count} has started. Discuss among yourselves to find the Mafia!")
    return state


def next_phase(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """Advance to the next phase, resolving votes or night actions on the way. Returns new state."""
    if state.phase == Phase.LOBBY:
        return start_game(state, rng)
    if state.phase == Phase.RESULTS:
        return new_game(state.settings)

    state = copy.deepcopy(state)
    if state.phase == Phase.ROLE_ASSIGNMENT:
        state.phase = Phase.DAY
        state.day_count = 1
        _log(state, "Day 1 has started. Discuss among yourselves to find the Mafia!")
        return state
    if state.phase == Phase.DAY:
        state.phase = Phase.VOTING
        state.votes = {}
        _log(state, "Voting has started. Choose someone to eliminate!")
        return state
    if state.phase == Phase.VOTING:
        return _resolve_voting(state)
    return _resolve_night(state)
