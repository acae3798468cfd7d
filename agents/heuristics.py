"""Chat keyword heuristics used by simulated players. Advisory only."""

from collections import Counter

from game.state import ChatMessage, Player

ACCUSATION_KEYWORDS = (
    "suspicious", "mafia", "evil", "lying", "liar", "kill", "vote",
    "suspect", "eliminate", "guilty", "not innocent",
)

ROLE_KEYWORDS = ("detective", "doctor", "investigated", "protected")


def _is_accusation(text: str) -> bool:
    return any(k in text for k in ACCUSATION_KEYWORDS)


def _mentioned(text: str, players: list[Player], author_id: str) -> list[Player]:
    return [p for p in players if p.id != author_id and p.name.lower() in text]


def find_accusers(chat: list[ChatMessage], players: list[Player]) -> list[str]:
    """Ids of players who named someone else in an accusing message, first-seen order."""
    accusers: list[str] = []
    for msg in chat:
        text = msg.content.lower()
        if not _is_accusation(text):
            continue
        if _mentioned(text, players, msg.player_id) and msg.player_id not in accusers:
            accusers.append(msg.player_id)
    return accusers


def find_suspicious_players(chat: list[ChatMessage], players: list[Player]) -> list[str]:
    """
    Players named in more than one accusing message. When nobody qualifies,
    living players who have not said anything yet.
    """
    mentions: Counter[str] = Counter()
    for msg in chat:
        text = msg.content.lower()
        if _is_accusation(text):
            mentions.update(p.id for p in _mentioned(text, players, msg.player_id))
    suspicious = [p.id for p in players if mentions[p.id] > 1]
    if suspicious:
        return suspicious
    talkative = {m.player_id for m in chat}
    return [p.id for p in players if p.alive and p.id not in talkative]


def find_role_claimers(chat: list[ChatMessage]) -> list[str]:
    """Ids of players whose messages use detective/doctor vocabulary."""
    claimers: list[str] = []
    for msg in chat:
        text = msg.content.lower()
        if any(k in text for k in ROLE_KEYWORDS) and msg.player_id not in claimers:
            claimers.append(msg.player_id)
    return claimers


def find_likely_targets(chat: list[ChatMessage], players: list[Player]) -> list[str]:
    """Role claimers plus heavily accused players: who the mafia probably wants dead."""
    targets = find_role_claimers(chat)
    for pid in find_suspicious_players(chat, players):
        if pid not in targets:
            targets.append(pid)
    return targets
