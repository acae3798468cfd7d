"""Decision policy for simulated players: votes, night targets and chat lines."""

import random
from typing import Callable, Optional, Sequence

from agents.chat_agent import generate_message
from agents.heuristics import (
    find_accusers,
    find_likely_targets,
    find_role_claimers,
    find_suspicious_players,
)
from game.engine import known_mafia_ids
from game.rules import DOCTOR_SELF_PROTECT_PROBABILITY, Phase, Role
from game.state import GameState, Player

MessageFn = Callable[..., str]


class DecisionPolicy:
    """
    Heuristic choices for one session's simulated players. Outputs are advisory:
    the session applies them through the same checks as human actions.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        message_fn: Optional[MessageFn] = None,
    ):
        self.rng = rng or random.Random()
        self.message_fn = message_fn or generate_message

    def decide(
        self,
        player: Player,
        state: GameState,
        day_number: int,
        discussion_target: Optional[Player] = None,
    ) -> Optional[str]:
        """Target id, chat line or None, depending on the phase."""
        if not player.alive:
            return None
        if discussion_target is not None or state.phase == Phase.DAY:
            return self.compose_message(player, state, day_number, discussion_target)
        if state.phase == Phase.VOTING:
            return self.choose_vote(player, state)
        if state.phase == Phase.NIGHT:
            return self.choose_night_target(player, state)
        return None

    def _pick(self, ids: Sequence[str]) -> Optional[str]:
        return self.rng.choice(list(ids)) if ids else None

    def _prefer(self, candidates: list[Player], *preferred: Sequence[str]) -> Optional[str]:
        """Uniform pick from the first non-empty preferred subset of candidates, else from all."""
        candidate_ids = [p.id for p in candidates]
        for ids in preferred:
            subset = [pid for pid in candidate_ids if pid in ids]
            if subset:
                return self._pick(subset)
        return self._pick(candidate_ids)

    def _others(self, player: Player, state: GameState) -> list[Player]:
        return [p for p in state.get_alive_players() if p.id != player.id]

    def _mafia_choice(self, player: Player, state: GameState) -> Optional[str]:
        non_mafia = [p for p in self._others(player, state) if p.role != Role.MAFIA]
        return self._prefer(
            non_mafia,
            find_accusers(state.chat, state.players),
            find_role_claimers(state.chat),
        )

    def choose_vote(self, player: Player, state: GameState) -> Optional[str]:
        if player.role == Role.MAFIA:
            return self._mafia_choice(player, state)
        others = self._others(player, state)
        preferred = []
        if player.role == Role.DETECTIVE:
            preferred.append(known_mafia_ids(state, player.id))
        preferred.append(find_suspicious_players(state.chat, state.players))
        return self._prefer(others, *preferred)

    def choose_night_target(self, player: Player, state: GameState) -> Optional[str]:
        others = self._others(player, state)
        if player.role == Role.MAFIA:
            return self._mafia_choice(player, state)
        if player.role == Role.DETECTIVE:
            return self._prefer(others, find_suspicious_players(state.chat, state.players))
        if player.role == Role.DOCTOR:
            if self.rng.random() < DOCTOR_SELF_PROTECT_PROBABILITY:
                return player.id
            return self._prefer(others, find_likely_targets(state.chat, state.players))
        return None

    def choose_discussion_target(self, player: Player, state: GameState) -> Optional[Player]:
        others = self._others(player, state)
        return self.rng.choice(others) if others else None

    def compose_message(
        self,
        player: Player,
        state: GameState,
        day_number: int,
        discussion_target: Optional[Player] = None,
    ) -> str:
        return self.message_fn(player, state, day_number, discussion_target, rng=self.rng)
