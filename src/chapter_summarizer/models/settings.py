"""Application settings model."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_MODEL = "x-ai/grok-4-fast"
DEFAULT_PROMPT = (
    "Summarize chapter in 3-5 paragraphs. Do not inflate the paragraph count, "
    "only grow the number above 3 if necessary. Return ONLY plain text without "
    "any markdown formatting, bullet points, or special characters."
)
DEFAULT_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"

MIN_SUMMARY_TOKENS = 100
MAX_SUMMARY_TOKENS = 2000


def clamp_summary_tokens(value: int) -> int:
    """Clamp a summary length to the supported range."""
    return max(MIN_SUMMARY_TOKENS, min(MAX_SUMMARY_TOKENS, value))


class Settings(BaseModel):
    """User-configurable settings, read-only once handed to the core."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    prompt: str = DEFAULT_PROMPT
    max_summary_tokens: int = 1000
    # Budget for the chapter text sent to the model
    max_input_tokens: int = Field(default=8000, ge=1)
    endpoint: str = DEFAULT_ENDPOINT
    request_timeout: float = Field(default=120.0, gt=0)
    retry_delay: float = Field(default=2.0, ge=0)
    # Sent as HTTP-Referer for OpenRouter app attribution
    app_url: str | None = None
    summaries_dir: Path | None = None

    @field_validator("max_summary_tokens", mode="before")
    @classmethod
    def _clamp_tokens(cls, value: object) -> int:
        try:
            tokens = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            tokens = 500
        return clamp_summary_tokens(tokens)

    @field_validator("api_key", "model", "prompt", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value
