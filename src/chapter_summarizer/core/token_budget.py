"""Approximate token accounting for chapter text.

Token counts are estimated as one token per four UTF-8 bytes. This is a
fixed heuristic rather than a real tokenizer and is kept exact so budgets
behave the same across models.
"""

import logging
import math

log = logging.getLogger(__name__)

BYTES_PER_TOKEN = 4
TRUNCATION_MARKER = "\n\n[Text truncated]"


class TokenBudgetEstimator:
    """Estimate token counts and trim text to a budget."""

    def __init__(self, marker: str = TRUNCATION_MARKER):
        self.marker = marker

    def estimate(self, text: str) -> int:
        """Approximate token count: ceil(bytes / 4)."""
        return math.ceil(len(text.encode("utf-8")) / BYTES_PER_TOKEN)

    def is_truncated(self, text: str) -> bool:
        """Check whether text carries the truncation marker."""
        return text.endswith(self.marker)

    def truncate(self, text: str, max_tokens: int) -> str:
        """Return text cut to at most ``max_tokens`` estimated tokens.

        Text within budget is returned unchanged. Otherwise the body is cut
        to ``max_tokens * 4`` bytes and the truncation marker is appended.
        Already-truncated text whose body fits the budget is left alone, so
        repeated calls with the same budget are stable.
        """
        if max_tokens < 0:
            raise ValueError("max_tokens must be non-negative")

        if self.estimate(text) <= max_tokens:
            return text

        max_bytes = max_tokens * BYTES_PER_TOKEN

        if self.is_truncated(text):
            body = text[: -len(self.marker)]
            if len(body.encode("utf-8")) <= max_bytes:
                return text

        raw = text.encode("utf-8")[:max_bytes]
        # Drop a partial trailing multi-byte character
        body = raw.decode("utf-8", errors="ignore")

        log.warning(
            f"Chapter text truncated from ~{self.estimate(text)} to {max_tokens} tokens"
        )
        return body + self.marker


_default = TokenBudgetEstimator()


def estimate(text: str) -> int:
    """Module-level shortcut for :meth:`TokenBudgetEstimator.estimate`."""
    return _default.estimate(text)


def truncate(text: str, max_tokens: int) -> str:
    """Module-level shortcut for :meth:`TokenBudgetEstimator.truncate`."""
    return _default.truncate(text, max_tokens)
