"""Agents: decision policy and Pydantic AI chat for simulated players."""

from agents.policy import DecisionPolicy
from agents.chat_agent import generate_message
from agents.models import ChatResponse

__all__ = [
    "DecisionPolicy",
    "generate_message",
    "ChatResponse",
]
