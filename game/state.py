"""Game state types for Mafia Party."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from game.rules import Faction, Gender, Phase, Role


@dataclass(frozen=True)
class Player:
    """A player in the game."""

    id: str
    name: str
    gender: Gender = Gender.MALE
    role: Role = Role.VILLAGER  # placeholder until roles are assigned
    alive: bool = True
    is_host: bool = False
    is_simulated: bool = False
    last_message: Optional[str] = None


@dataclass(frozen=True)
class ChatMessage:
    """One chat line; timestamp is epoch milliseconds."""

    player_id: str
    player_name: str
    content: str
    timestamp: int


@dataclass(frozen=True)
class Investigation:
    """A detective's night investigation. Whether the target is mafia is read from the roster."""

    day: int
    detective_id: str
    target_id: str


@dataclass
class NightActions:
    """Night submissions for one night, keyed by actor id (before resolution)."""

    mafia_votes: dict[str, str] = field(default_factory=dict)
    detective_targets: dict[str, str] = field(default_factory=dict)
    doctor_targets: dict[str, str] = field(default_factory=dict)

    @property
    def mafia_target_id(self) -> Optional[str]:
        """Target with the most mafia votes; ties go to the target chosen first."""
        if not self.mafia_votes:
            return None
        counts = Counter(self.mafia_votes.values())
        best = max(counts.values())
        for target_id in self.mafia_votes.values():
            if counts[target_id] == best:
                return target_id
        return None

    def is_protected(self, player_id: str) -> bool:
        return player_id in self.doctor_targets.values()

    def is_empty(self) -> bool:
        return not (self.mafia_votes or self.detective_targets or self.doctor_targets)


@dataclass
class GameSettings:
    """Role quotas and simulated player count."""

    mafia_count: int = 1
    detective_count: int = 1
    doctor_count: int = 1
    simulated_player_count: int = 5

    @property
    def special_role_count(self) -> int:
        return self.mafia_count + self.detective_count + self.doctor_count


@dataclass(frozen=True)
class GameOutcome:
    over: bool
    winner: Optional[Faction] = None


@dataclass
class GameState:
    """Full game state."""

    phase: Phase = Phase.LOBBY
    players: list[Player] = field(default_factory=list)
    day_count: int = 0
    votes: dict[str, list[str]] = field(default_factory=dict)  # target id -> voter ids
    night_actions: NightActions = field(default_factory=NightActions)
    last_eliminated: Optional[Player] = None
    game_over: bool = False
    winner: Optional[Faction] = None
    event_log: list[str] = field(default_factory=list)
    chat: list[ChatMessage] = field(default_factory=list)
    investigations: list[Investigation] = field(default_factory=list)
    settings: GameSettings = field(default_factory=GameSettings)
    simulated_thinking: bool = False

    def get_alive_players(self) -> list[Player]:
        """Return list of alive players."""
        return [p for p in self.players if p.alive]

    def get_player(self, player_id: str) -> Optional[Player]:
        """Return player by id or None."""
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def get_players_by_role(self, role: Role) -> list[Player]:
        """Return alive players with the given role."""
        return [p for p in self.players if p.alive and p.role == role]

    def get_host(self) -> Optional[Player]:
        for p in self.players:
            if p.is_host:
                return p
        return None

    def vote_of(self, voter_id: str) -> Optional[str]:
        """Return the target the voter currently votes for, if any."""
        for target_id, voters in self.votes.items():
            if voter_id in voters:
                return target_id
        return None

    def replace_player(self, player: Player) -> None:
        """Swap in an updated record for player.id, keeping roster position."""
        self.players = [player if p.id == player.id else p for p in self.players]
