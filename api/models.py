"""Pydantic request/response models for the API."""

from pydantic import BaseModel, Field

from game.engine import investigation_result
from game.rules import Phase, Role
from game.state import GameSettings, GameState, Player

# Validation constants (no magic numbers in validation)
MAX_PLAYER_NAME_LENGTH = 30
MAX_CHAT_LENGTH = 500
MAX_SIMULATED_PLAYERS = 20
MAX_ROLE_COUNT = 10


class SettingsBody(BaseModel):
    """Role quotas; clamped to the roster when the game starts."""

    mafia_count: int = Field(default=1, ge=0, le=MAX_ROLE_COUNT)
    detective_count: int = Field(default=1, ge=0, le=MAX_ROLE_COUNT)
    doctor_count: int = Field(default=1, ge=0, le=MAX_ROLE_COUNT)
    simulated_player_count: int = Field(default=5, ge=0, le=MAX_SIMULATED_PLAYERS)

    def to_settings(self) -> GameSettings:
        return GameSettings(**self.model_dump())

    @classmethod
    def from_settings(cls, settings: GameSettings) -> "SettingsBody":
        return cls(
            mafia_count=settings.mafia_count,
            detective_count=settings.detective_count,
            doctor_count=settings.doctor_count,
            simulated_player_count=settings.simulated_player_count,
        )


class SessionCreateRequest(BaseModel):
    """Body for POST /sessions."""

    settings: SettingsBody | None = None
    seed: int | None = Field(default=None, description="Seed for role shuffles and simulated choices")


class JoinRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)
    gender: str = Field(default="male", pattern="^(male|female)$")


class SimulatedPlayersRequest(BaseModel):
    count: int = Field(default=5, ge=0, le=MAX_SIMULATED_PLAYERS)


class HostRequest(BaseModel):
    """Body for host-only actions. Omitting player_id skips the host check (single-player UI)."""

    player_id: str | None = None


class VoteRequest(BaseModel):
    voter_id: str
    target_id: str


class NightActionRequest(BaseModel):
    player_id: str
    role: str = Field(..., pattern="^(mafia|detective|doctor)$")
    target_id: str


class ChatRequest(BaseModel):
    player_id: str
    content: str = Field(..., min_length=1, max_length=MAX_CHAT_LENGTH)


class PlayerPublic(BaseModel):
    """Player as shown to a viewer: role hidden unless the viewer may know it."""

    id: str
    name: str
    gender: str
    alive: bool
    is_host: bool
    is_simulated: bool
    last_message: str | None = None
    role: str | None = Field(default=None, description="Set for dead players, the viewer, mafia partners, and after game over")


class ChatMessagePublic(BaseModel):
    player_id: str
    player_name: str
    content: str
    timestamp: int


class ViewerInfo(BaseModel):
    """What the requesting player privately knows."""

    id: str
    role: str
    night_target_id: str | None = None
    investigation_is_mafia: bool | None = Field(
        default=None,
        description="Detective only: whether the latest investigated player is mafia",
    )


class GameStateResponse(BaseModel):
    """Public state for GET /sessions/{id}."""

    session_id: str
    accepted: bool = Field(default=True, description="False when the requested action was rejected")
    phase: str
    day_count: int
    players: list[PlayerPublic]
    votes: dict[str, list[str]]
    last_eliminated: PlayerPublic | None = None
    game_over: bool
    winner: str | None = None
    event_log: list[str]
    chat: list[ChatMessagePublic]
    simulated_thinking: bool
    pending_turns: int = 0
    settings: SettingsBody
    viewer: ViewerInfo | None = None


def _role_visible(player: Player, viewer: Player | None, state: GameState) -> bool:
    if state.phase == Phase.LOBBY:
        return False
    if state.game_over or not player.alive:
        return True
    if viewer is None:
        return False
    if viewer.id == player.id:
        return True
    return viewer.role == Role.MAFIA and player.role == Role.MAFIA


def _player_public(player: Player, viewer: Player | None, state: GameState) -> PlayerPublic:
    return PlayerPublic(
        id=player.id,
        name=player.name,
        gender=player.gender.value,
        alive=player.alive,
        is_host=player.is_host,
        is_simulated=player.is_simulated,
        last_message=player.last_message,
        role=player.role.value if _role_visible(player, viewer, state) else None,
    )


def _viewer_info(viewer: Player, state: GameState) -> ViewerInfo | None:
    if state.phase == Phase.LOBBY:
        return None
    actions = state.night_actions
    slots = {
        Role.MAFIA: actions.mafia_votes,
        Role.DETECTIVE: actions.detective_targets,
        Role.DOCTOR: actions.doctor_targets,
    }
    night_target = slots[viewer.role].get(viewer.id) if viewer.role in slots else None
    result = investigation_result(state, viewer.id) if viewer.role == Role.DETECTIVE else None
    return ViewerInfo(
        id=viewer.id,
        role=viewer.role.value,
        night_target_id=night_target,
        investigation_is_mafia=result,
    )


def game_state_to_public(
    session_id: str,
    state: GameState,
    viewer_id: str | None = None,
    accepted: bool = True,
    pending_turns: int = 0,
) -> GameStateResponse:
    """Build the response for one viewer; hide roles the viewer may not know."""
    viewer = state.get_player(viewer_id) if viewer_id else None
    last = state.last_eliminated
    return GameStateResponse(
        session_id=session_id,
        accepted=accepted,
        phase=state.phase.value,
        day_count=state.day_count,
        players=[_player_public(p, viewer, state) for p in state.players],
        votes={target: list(voters) for target, voters in state.votes.items()},
        last_eliminated=_player_public(last, viewer, state) if last else None,
        game_over=state.game_over,
        winner=state.winner.value if state.winner else None,
        event_log=list(state.event_log),
        chat=[
            ChatMessagePublic(
                player_id=m.player_id,
                player_name=m.player_name,
                content=m.content,
                timestamp=m.timestamp,
            )
            for m in state.chat
        ],
        simulated_thinking=state.simulated_thinking,
        pending_turns=pending_turns,
        settings=SettingsBody.from_settings(state.settings),
        viewer=_viewer_info(viewer, state) if viewer else None,
    )
