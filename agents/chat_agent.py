"""Pydantic AI chat agent for simulated players, with phrasebook fallback."""

import logging
import random
from typing import Optional

from pydantic_ai import Agent

from agents.llm_config import get_model_from_config, get_timeout, is_configured
from agents.models import ChatResponse
from agents.phrasebook import fallback_message
from agents.prompts import RULES_SUMMARY, SYSTEM_PROMPT, build_chat_prompt
from game.state import GameState, Player

logger = logging.getLogger(__name__)

# Model is passed at run(); the orchestrating code puts the full context in the user message.
_chat_agent = Agent(
    model=None,
    output_type=ChatResponse,
    system_prompt=[RULES_SUMMARY, SYSTEM_PROMPT],
)


def get_chat_agent() -> Agent[None, ChatResponse]:
    return _chat_agent


def generate_message(
    player: Player,
    state: GameState,
    day_number: int,
    discussion_target: Optional[Player] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    One chat line for a simulated player. Uses the chat model when one is
    configured; any failure or timeout falls back to the phrasebook.
    """
    if not is_configured():
        return fallback_message(player, discussion_target, rng)
    prompt = build_chat_prompt(player, state, day_number, discussion_target)
    try:
        result = get_chat_agent().run_sync(
            prompt,
            model=get_model_from_config(),
            model_settings={"timeout": get_timeout()},
        )
        text = (result.output.message if result.output else "").strip()
    except Exception as e:
        logger.warning("Chat generation failed for %s: %s", player.id, e)
        text = ""
    return text or fallback_message(player, discussion_target, rng)
