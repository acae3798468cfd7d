"""FastAPI app: create sessions and drive them through the game's entry points."""

import logging
import uuid

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from api.game_store import (
    create as store_create,
    delete as store_delete,
    get as store_get,
    list_sessions,
)
from api.models import (
    ChatRequest,
    GameStateResponse,
    HostRequest,
    JoinRequest,
    NightActionRequest,
    SessionCreateRequest,
    SettingsBody,
    SimulatedPlayersRequest,
    VoteRequest,
    game_state_to_public,
)
from game.roles import default_settings
from game.rules import Gender, Phase, Role
from game.session import GameSession, SessionConfig

logger = logging.getLogger(__name__)

app = FastAPI(title="Mafia Party API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_session(session_id: str) -> GameSession:
    session = store_get(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return session


def _response(
    session_id: str,
    session: GameSession,
    viewer_id: str | None = None,
    accepted: bool = True,
) -> GameStateResponse:
    return game_state_to_public(
        session_id,
        session.state,
        viewer_id=viewer_id,
        accepted=accepted,
        pending_turns=session.pending_turns,
    )


@app.post("/sessions", response_model=dict, tags=["Sessions"], summary="Create session")
def create_session(body: SessionCreateRequest | None = None):
    """Create a new session in the lobby. Returns session_id."""
    body = body or SessionCreateRequest()
    config = SessionConfig.from_env()
    if body.seed is not None:
        config.seed = body.seed
    session = GameSession(config=config)
    if body.settings is not None:
        session.update_settings(body.settings.to_settings())
    session_id = str(uuid.uuid4())
    store_create(session_id, session)
    logger.info("Created session %s", session_id)
    return {"session_id": session_id}


@app.get("/sessions", response_model=list[str], tags=["Sessions"], summary="List session IDs")
def list_sessions_route():
    return list_sessions()


@app.get("/sessions/{session_id}", response_model=GameStateResponse, tags=["Sessions"], summary="Get state")
def get_session(session_id: str, viewer_id: str | None = None):
    """State as seen by viewer_id (roles hidden when omitted)."""
    return _response(session_id, _get_session(session_id), viewer_id)


@app.delete("/sessions/{session_id}", tags=["Sessions"], summary="Drop session")
def delete_session(session_id: str):
    if not store_delete(session_id):
        raise HTTPException(404, "Session not found")
    return {"deleted": session_id}


@app.post("/sessions/{session_id}/players", response_model=GameStateResponse, tags=["Lobby"], summary="Join")
def join(session_id: str, body: JoinRequest):
    session = _get_session(session_id)
    player = session.join_player(body.name, Gender(body.gender))
    viewer_id = player.id if player else None
    return _response(session_id, session, viewer_id, accepted=player is not None)


@app.post(
    "/sessions/{session_id}/simulated-players",
    response_model=GameStateResponse,
    tags=["Lobby"],
    summary="Add simulated players",
)
def add_simulated(session_id: str, body: SimulatedPlayersRequest):
    session = _get_session(session_id)
    added = session.generate_simulated_players(body.count)
    return _response(session_id, session, accepted=bool(added) or body.count == 0)


@app.put("/sessions/{session_id}/settings", response_model=GameStateResponse, tags=["Lobby"], summary="Update settings")
def put_settings(session_id: str, body: SettingsBody):
    session = _get_session(session_id)
    accepted = session.update_settings(body.to_settings())
    return _response(session_id, session, accepted=accepted)


@app.get(
    "/sessions/{session_id}/settings/suggested",
    response_model=SettingsBody,
    tags=["Lobby"],
    summary="Suggested quotas for the current roster",
)
def suggested_settings(session_id: str):
    state = _get_session(session_id).state
    simulated = sum(1 for p in state.players if p.is_simulated)
    return SettingsBody.from_settings(default_settings(len(state.players), simulated))


@app.post("/sessions/{session_id}/start", response_model=GameStateResponse, tags=["Game"], summary="Start game")
def start(session_id: str, body: HostRequest | None = None):
    session = _get_session(session_id)
    requested_by = body.player_id if body else None
    accepted = session.start_game(requested_by)
    return _response(session_id, session, requested_by, accepted=accepted)


@app.post("/sessions/{session_id}/votes", response_model=GameStateResponse, tags=["Game"], summary="Cast vote")
def vote(session_id: str, body: VoteRequest):
    session = _get_session(session_id)
    accepted = session.cast_vote(body.voter_id, body.target_id)
    return _response(session_id, session, body.voter_id, accepted=accepted)


@app.post(
    "/sessions/{session_id}/night-actions",
    response_model=GameStateResponse,
    tags=["Game"],
    summary="Submit night action",
)
def night_action(session_id: str, body: NightActionRequest):
    session = _get_session(session_id)
    accepted = session.submit_night_action(Role(body.role), body.player_id, body.target_id)
    return _response(session_id, session, body.player_id, accepted=accepted)


@app.post("/sessions/{session_id}/chat", response_model=GameStateResponse, tags=["Game"], summary="Post chat")
def chat(session_id: str, body: ChatRequest):
    session = _get_session(session_id)
    accepted = session.post_chat_message(body.player_id, body.content)
    return _response(session_id, session, body.player_id, accepted=accepted)


@app.post("/sessions/{session_id}/proceed", response_model=GameStateResponse, tags=["Game"], summary="Next phase")
def proceed(session_id: str, body: HostRequest | None = None):
    """Advance the phase; from results this restarts the session."""
    session = _get_session(session_id)
    requested_by = body.player_id if body else None
    if session.state.phase == Phase.RESULTS:
        accepted = session.restart(requested_by)
        return _response(session_id, session, requested_by, accepted=accepted)
    accepted = session.proceed_to_next_phase(requested_by)
    return _response(session_id, session, requested_by, accepted=accepted)


@app.post(
    "/sessions/{session_id}/simulate",
    response_model=GameStateResponse,
    tags=["Game"],
    summary="Run simulated players' turns",
)
def simulate(session_id: str, viewer_id: str | None = None):
    """Let simulated players chat, vote or act for the current phase."""
    session = _get_session(session_id)
    applied = session.simulate()
    logger.debug("Session %s: %d simulated actions applied", session_id, applied)
    return _response(session_id, session, viewer_id)


@app.get("/health", tags=["System"], summary="Health check")
def health():
    return {"status": "ok"}
