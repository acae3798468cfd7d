"""Pydantic models for structured LLM outputs."""

from pydantic import BaseModel, Field


class ChatResponse(BaseModel):
    """Structured response for one day-chat message."""

    message: str = Field(
        description="Your short message to the other players (1-2 sentences). Do not reveal your role."
    )
