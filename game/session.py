"""Game session: owns one game's state and serializes every mutation through one handler."""

import logging
import os
import random
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from agents.phrasebook import fallback_message
from agents.policy import DecisionPolicy
from game.engine import (
    InvalidActionError,
    add_chat_message,
    add_simulated_players,
    cast_vote,
    join_player,
    new_game,
    next_phase,
    start_game,
    submit_night_action,
    update_settings,
)
from game.rules import NIGHT_ROLES, Gender, Phase, Role
from game.state import GameSettings, GameState, Player

logger = logging.getLogger(__name__)

ENV_TURN_DELAY = "MAFIA_TURN_DELAY"
ENV_SEED = "MAFIA_SEED"


@dataclass
class SessionConfig:
    """Per-session knobs. turn_delay only paces simulated turns; 0 runs them back to back."""

    turn_delay: float = 0.0
    seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> "SessionConfig":
        delay = os.environ.get(ENV_TURN_DELAY)
        seed = os.environ.get(ENV_SEED)
        try:
            turn_delay = max(0.0, float(delay)) if delay else 0.0
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", ENV_TURN_DELAY, delay)
            turn_delay = 0.0
        return cls(turn_delay=turn_delay, seed=int(seed) if seed and seed.isdigit() else None)


class TurnKind(str, Enum):
    CHAT = "chat"
    VOTE = "vote"
    NIGHT_ACTION = "night_action"


@dataclass(frozen=True)
class SimulatedTurn:
    """A queued simulated-player turn, valid only while phase and day are unchanged."""

    kind: TurnKind
    player_id: str
    phase: Phase
    day_count: int


class GameSession:
    """
    One game instance. Callers hold the session and use its entry points; each
    returns whether the action was accepted. Rejected actions leave state untouched.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        policy: Optional[DecisionPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or SessionConfig()
        self.rng = random.Random(self.config.seed)
        self.policy = policy or DecisionPolicy(rng=self.rng)
        self._sleep = sleep
        self._state = new_game()
        self._queue: deque[SimulatedTurn] = deque()
        # Guards _state and _queue. Decisions are computed outside it.
        self._lock = threading.RLock()

    @property
    def state(self) -> GameState:
        """Current state. Treat as read-only."""
        return self._state

    @property
    def pending_turns(self) -> int:
        return len(self._queue)

    def _apply(self, action: str, fn: Callable[..., GameState], *args) -> bool:
        with self._lock:
            try:
                new_state = fn(self._state, *args)
            except InvalidActionError as e:
                logger.debug("Rejected %s: %s", action, e)
                return False
            self._state = new_state
            return True

    def _is_host(self, requested_by: Optional[str]) -> bool:
        if requested_by is None:
            return True
        host = self._state.get_host()
        if host is None or host.id != requested_by:
            logger.debug("Rejected host action from %s", requested_by)
            return False
        return True

    def join_player(self, name: str, gender: Gender = Gender.MALE) -> Optional[Player]:
        with self._lock:
            if not self._apply("join", join_player, name, Gender(gender)):
                return None
            return self._state.players[-1]

    def generate_simulated_players(self, count: int) -> list[Player]:
        with self._lock:
            before = {p.id for p in self._state.players}
            if not self._apply("simulated players", add_simulated_players, count, self.rng):
                return []
            return [p for p in self._state.players if p.id not in before]

    def update_settings(self, settings: GameSettings) -> bool:
        return self._apply("settings", update_settings, settings)

    def start_game(self, requested_by: Optional[str] = None) -> bool:
        with self._lock:
            if not self._is_host(requested_by):
                return False
            if not self._apply("start", start_game, self.rng):
                return False
            logger.info("Game started with %d players", len(self._state.players))
            return True

    def cast_vote(self, voter_id: str, target_id: str) -> bool:
        return self._apply("vote", cast_vote, voter_id, target_id)

    def submit_night_action(self, role: Role, actor_id: str, target_id: str) -> bool:
        try:
            role = Role(role)
        except ValueError:
            logger.debug("Rejected night action with unknown role %r", role)
            return False
        return self._apply("night action", submit_night_action, role, actor_id, target_id)

    def post_chat_message(self, author_id: str, text: str) -> bool:
        return self._apply("chat", add_chat_message, author_id, text)

    def proceed_to_next_phase(self, requested_by: Optional[str] = None) -> bool:
        """Host-driven advance. Simulated turns still queued for the old phase go stale."""
        with self._lock:
            if not self._is_host(requested_by):
                return False
            previous = self._state.phase
            if not self._apply("proceed", next_phase, self.rng):
                return False
            logger.info(
                "Phase %s -> %s (day %d)", previous.value, self._state.phase.value, self._state.day_count
            )
            return True

    def restart(self, requested_by: Optional[str] = None) -> bool:
        """Play again: only from results; clears roster and queue, keeps settings."""
        with self._lock:
            if self._state.phase != Phase.RESULTS:
                logger.debug("Rejected restart in phase %s", self._state.phase.value)
                return False
            if not self.proceed_to_next_phase(requested_by):
                return False
            self._queue.clear()
            return True

    def schedule_simulated_turns(self) -> int:
        """Queue turns for living simulated players in the current phase. Returns how many."""
        with self._lock:
            state = self._state
            kinds: tuple[TurnKind, ...] = ()
            if state.phase == Phase.DAY:
                kinds = (TurnKind.CHAT,)
            elif state.phase == Phase.VOTING:
                kinds = (TurnKind.CHAT, TurnKind.VOTE)
            elif state.phase == Phase.NIGHT:
                kinds = (TurnKind.NIGHT_ACTION,)

            queued = 0
            for player in state.get_alive_players():
                if not player.is_simulated:
                    continue
                for kind in kinds:
                    if kind == TurnKind.NIGHT_ACTION and player.role not in NIGHT_ROLES:
                        continue
                    self._queue.append(SimulatedTurn(kind, player.id, state.phase, state.day_count))
                    queued += 1
            return queued

    def _is_stale(self, turn: SimulatedTurn) -> bool:
        return (turn.phase, turn.day_count) != (self._state.phase, self._state.day_count)

    def _set_thinking(self, value: bool) -> None:
        with self._lock:
            self._state.simulated_thinking = value

    def _next_turn(self) -> Optional[SimulatedTurn]:
        with self._lock:
            return self._queue.popleft() if self._queue else None

    def run_simulated_turns(self) -> int:
        """
        Drain the turn queue one turn at a time. Stale turns are dropped.
        simulated_thinking is set for the duration. Returns the number of accepted actions.
        """
        applied = 0
        first = True
        self._set_thinking(True)
        try:
            while True:
                turn = self._next_turn()
                if turn is None:
                    break
                if self._is_stale(turn):
                    logger.debug("Discarding stale %s turn for %s", turn.kind.value, turn.player_id)
                    continue
                if not first and self.config.turn_delay > 0:
                    self._sleep(self.config.turn_delay)
                first = False
                if self._run_turn(turn):
                    applied += 1
        finally:
            self._set_thinking(False)
        return applied

    def simulate(self) -> int:
        """Schedule and run one batch of simulated turns for the current phase."""
        self.schedule_simulated_turns()
        return self.run_simulated_turns()

    def _random_other(self, player: Player) -> Optional[str]:
        others = [p.id for p in self._state.get_alive_players() if p.id != player.id]
        return self.rng.choice(others) if others else None

    def _run_turn(self, turn: SimulatedTurn) -> bool:
        # Decide against a snapshot; apply only if the phase has not moved on.
        state = self._state
        player = state.get_player(turn.player_id)
        if player is None or not player.alive:
            return False

        if turn.kind == TurnKind.CHAT:
            try:
                target = self.policy.choose_discussion_target(player, state)
            except Exception as e:
                logger.warning("Discussion target failed for %s: %s; skipping turn", player.id, e)
                return False
            if target is None:
                return False
            try:
                text = self.policy.decide(player, state, state.day_count, target)
            except Exception as e:
                logger.warning("Chat decision failed for %s: %s", player.id, e)
                text = fallback_message(player, target, self.rng)
            if not text:
                return False
            with self._lock:
                return not self._is_stale(turn) and self.post_chat_message(player.id, text)

        try:
            target_id = self.policy.decide(player, state, state.day_count)
        except Exception as e:
            logger.warning("%s decision failed for %s: %s; picking random target", turn.kind.value, player.id, e)
            target_id = self._random_other(player)
        if not target_id:
            return False
        with self._lock:
            if self._is_stale(turn):
                return False
            if turn.kind == TurnKind.VOTE:
                return self.cast_vote(player.id, target_id)
            return self.submit_night_action(player.role, player.id, target_id)
