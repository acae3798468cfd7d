"""Prompt and context building for simulated players' chat."""

from typing import Optional

from game.engine import investigation_result
from game.rules import CHAT_WINDOW_SIZE, Phase, Role, faction_of
from game.state import GameState, Player


RULES_SUMMARY = """
You are playing Mafia. There are two sides: the Villagers (villagers, detective, doctor) and the Mafia.
- At night: the Mafia choose one player to kill. The doctor protects one player from the kill. The detective learns whether one player is mafia.
- By day: everyone discusses, then votes to eliminate one player.
- Villagers win when all Mafia are dead. Mafia win when they equal or outnumber everyone else.
- Never reveal your secret role in public.
"""

SYSTEM_PROMPT = (
    "You are a player in a Mafia game. Generate realistic, concise messages (max 1-2 sentences) "
    "that a player might say in the game. Be subtle and strategic based on your role."
)

ROLE_BRIEFS = {
    Role.MAFIA: (
        "Your goal is to eliminate villagers until the mafia outnumbers them. "
        "Pretend to be innocent while subtly directing suspicion toward non-mafia players."
    ),
    Role.DETECTIVE: (
        "Your goal is to help the villagers identify and eliminate the mafia. "
        "Use your knowledge strategically without revealing your role too early."
    ),
    Role.DOCTOR: (
        "Your goal is to help the villagers by protecting players from mafia kills. "
        "Identify valuable players to protect without revealing your role directly."
    ),
    Role.VILLAGER: (
        "Your goal is to help identify and eliminate the mafia through careful observation. "
        "Analyze chat patterns and voting behavior to identify suspicious players."
    ),
}

DISCUSS_PLAYER_TEMPLATE = (
    "You are specifically discussing {target_name}. "
    "Based on your role and the game information, give your opinion on {target_name} in 1-2 sentences. "
    "Be strategic and consider what would benefit your team ({team})."
)
OPEN_DISCUSSION_INSTRUCTIONS = (
    "Generate a short, strategic message (1-2 sentences) that reflects your role and the current game state. "
    "Reference other players and previous conversations to make your response believable."
)


def _role_context(player: Player, state: GameState) -> list[str]:
    lines = [ROLE_BRIEFS[player.role]]
    if player.role == Role.MAFIA:
        partners = [p.name for p in state.get_players_by_role(Role.MAFIA) if p.id != player.id]
        if partners:
            lines.append(f"Your mafia teammates are: {', '.join(partners)}.")
        else:
            lines.append("You're the only mafia member left.")
    elif player.role == Role.DETECTIVE:
        found = []
        for inv in state.investigations:
            if inv.detective_id != player.id:
                continue
            target = state.get_player(inv.target_id)
            if target is None:
                continue
            verdict = "mafia" if investigation_result(state, player.id, inv.day) else "not mafia"
            found.append(f"night {inv.day}: {target.name} is {verdict}")
        if found:
            lines.append("Your investigations revealed: " + "; ".join(found) + ".")
    return lines


def build_game_context(state: GameState, player: Player, day_number: int) -> str:
    """Context for one simulated player: role brief, roster, recent chat and votes."""
    lines = [f"You are {player.name}, a {player.role.value}, on day {day_number}."]
    lines.extend(_role_context(player, state))
    alive = state.get_alive_players()
    lines.append(f"There are {len(alive)} players alive: {', '.join(p.name for p in alive)}.")
    dead = [p for p in state.players if not p.alive]
    if dead:
        lines.append(
            "Eliminated players: " + ", ".join(f"{p.name} ({p.role.value})" for p in dead) + "."
        )
    recent = state.chat[-CHAT_WINDOW_SIZE:]
    if recent:
        lines.append("Recent chat messages:")
        for msg in recent:
            lines.append(f'  {msg.player_name}: "{msg.content}"')
    if state.votes:
        lines.append("Votes so far:")
        for target_id, voter_ids in state.votes.items():
            target = state.get_player(target_id)
            voters = [v.name for v in (state.get_player(i) for i in voter_ids) if v]
            if target and voters:
                lines.append(f"  {', '.join(voters)} voted for {target.name}.")
    lines.append(f"The current phase is '{state.phase.value}'.")
    return "\n".join(lines)


def chat_instructions(
    player: Player,
    state: GameState,
    discussion_target: Optional[Player] = None,
) -> str:
    """Instructions for one chat line, optionally about a specific player."""
    if discussion_target is None:
        return OPEN_DISCUSSION_INSTRUCTIONS
    inst = DISCUSS_PLAYER_TEMPLATE.format(
        target_name=discussion_target.name,
        team=faction_of(player.role).value,
    )
    said = [m.content for m in state.chat if m.player_id == discussion_target.id]
    if said:
        quoted = ", ".join(f'"{s}"' for s in said[-3:])
        inst = f"Here's what {discussion_target.name} has said: {quoted}. " + inst
    return inst


def build_chat_prompt(
    player: Player,
    state: GameState,
    day_number: int,
    discussion_target: Optional[Player] = None,
) -> str:
    if state.phase not in (Phase.DAY, Phase.VOTING):
        return build_game_context(state, player, day_number)
    return (
        build_game_context(state, player, day_number)
        + "\n\n"
        + chat_instructions(player, state, discussion_target)
    )
