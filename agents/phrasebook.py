"""Canned lines for simulated players when the chat model is unavailable."""

import random
from typing import Optional

from game.rules import Role
from game.state import Player

GENERIC_MESSAGES = (
    "Looking at the voting patterns, something doesn't add up.",
    "I've been watching everyone's behavior carefully.",
    "Let's analyze who's been defending whom so far.",
    "The inconsistencies in some people's arguments are telling.",
    "I think we need to consider who's been quiet and who's been vocal.",
)

ROLE_MESSAGES = {
    Role.MAFIA: (
        "Based on their behavior, I'm starting to suspect someone other than me.",
        "I've noticed some inconsistencies in what's being said.",
        "Let's not rush to judgment without evidence.",
        "I think we should focus on the facts we know for certain.",
        "Has anyone noticed the contradictions in some statements?",
    ),
    Role.DETECTIVE: (
        "I've gathered some useful information over the past few nights.",
        "Let's think critically about who's been defensive.",
        "The evidence suggests we should look more closely at certain players.",
        "I've been analyzing everyone's behavior patterns.",
        "I have reasons to believe we're overlooking something important.",
    ),
    Role.DOCTOR: (
        "We need to protect our key players.",
        "I think we can deduce who might be targeted next.",
        "Let's consider who's been contributing valuable insights.",
        "We should be careful about who we eliminate today.",
        "I have my suspicions, but let's hear everyone out first.",
    ),
}

ACCUSE_TEMPLATES = (
    "{name}'s arguments don't seem consistent with their earlier statements.",
    "I've noticed {name} has been deflecting attention from themselves.",
    "{name}'s voting pattern is suspicious - they seem to protect certain players.",
    "Something about {name}'s behavior doesn't feel right to me.",
    "{name} was quick to accuse others but offers little evidence.",
)

DEFEND_TEMPLATES = (
    "{name}'s arguments have been consistent throughout the game.",
    "I think {name} has made valid points that we should consider.",
    "{name} has been helping us identify suspicious behavior.",
    "I don't see strong evidence against {name} at this point.",
    "{name}'s voting choices make sense to me.",
)


def fallback_message(
    player: Player,
    discussion_target: Optional[Player] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Mafia defend fellow mafia and accuse everyone else; the village accuses or
    defends at even odds. Without a discussion target, a role-flavored line.
    """
    rng = rng or random.Random()
    if discussion_target is not None:
        if player.role == Role.MAFIA:
            accuse = discussion_target.role != Role.MAFIA
        else:
            accuse = rng.random() > 0.5
        templates = ACCUSE_TEMPLATES if accuse else DEFEND_TEMPLATES
        return rng.choice(templates).format(name=discussion_target.name)
    return rng.choice(ROLE_MESSAGES.get(player.role, GENERIC_MESSAGES))
