"""Data models for summary requests, responses and saved records."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

# Display rates per 1K tokens, used only for the rough cost readout
PROMPT_COST_PER_1K = 0.0005
COMPLETION_COST_PER_1K = 0.0015


class SummaryRequest(BaseModel):
    """Everything needed to ask the remote model for one chapter summary."""

    system_prompt: str
    chapter_title: str
    chapter_text: str
    model: str
    max_tokens: int
    temperature: float = 0.7

    def user_message(self) -> str:
        """Build the user turn carrying the chapter."""
        return f"Chapter: {self.chapter_title}\n\n{self.chapter_text}"

    def messages(self) -> list[dict[str, str]]:
        """Two-message chat exchange: system prompt, then the chapter."""
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_message()},
        ]

    def to_payload(self) -> dict:
        """JSON body for a chat-completion endpoint."""
        return {
            "model": self.model,
            "messages": self.messages(),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


class Usage(BaseModel):
    """Token accounting reported by the API."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def estimated_cost(self) -> float:
        """Approximate cost in USD."""
        return (
            self.prompt_tokens * PROMPT_COST_PER_1K
            + self.completion_tokens * COMPLETION_COST_PER_1K
        ) / 1000


class SummaryResponse(BaseModel):
    """Generated summary text plus optional usage metrics."""

    content: str
    usage: Usage | None = None
    model: str | None = None
    attempts: int = 1


class SummaryRecord(BaseModel):
    """A summary persisted to disk."""

    chapter_title: str
    timestamp: datetime = Field(default_factory=datetime.now)
    model: str
    content: str
    path: Path | None = None
