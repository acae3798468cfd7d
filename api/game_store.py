"""In-memory session store. Sessions live as long as the process."""

from game.session import GameSession

# session_id -> GameSession
_store: dict[str, GameSession] = {}


def create(session_id: str, session: GameSession) -> None:
    _store[session_id] = session


def get(session_id: str) -> GameSession | None:
    return _store.get(session_id)


def delete(session_id: str) -> bool:
    return _store.pop(session_id, None) is not None


def list_sessions() -> list[str]:
    return list(_store.keys())
