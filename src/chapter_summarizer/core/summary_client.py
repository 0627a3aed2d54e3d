"""Chat-completion client for chapter summaries, with typed errors and retry."""

import logging
import threading
import time
from typing import Any

import httpx
from pydantic import ValidationError

from chapter_summarizer.errors import ErrorKind, SummaryError, cancelled
from chapter_summarizer.models.settings import Settings
from chapter_summarizer.models.summary import SummaryRequest, SummaryResponse, Usage

log = logging.getLogger(__name__)

APP_TITLE = "Chapter Summarizer"


class SummaryClient:
    """Send summary requests to an OpenAI-compatible chat-completion endpoint."""

    MAX_ATTEMPTS = 3

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None):
        self.settings = settings
        self.endpoint = settings.endpoint
        self.retry_delay = settings.retry_delay
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=settings.request_timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "SummaryClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def build_request(self, chapter_title: str, chapter_text: str) -> SummaryRequest:
        """Build a request from the configured prompt, model and length."""
        return SummaryRequest(
            system_prompt=self.settings.prompt,
            chapter_title=chapter_title,
            chapter_text=chapter_text,
            model=self.settings.model,
            max_tokens=self.settings.max_summary_tokens,
        )

    def summarize(
        self,
        request: SummaryRequest,
        api_key: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> SummaryResponse:
        """Request a summary, retrying transient failures.

        Makes at most ``MAX_ATTEMPTS`` attempts. Non-retryable errors are
        raised immediately; otherwise the last error is raised once the
        attempts run out. Setting ``cancel_event`` aborts before the next
        attempt, including during the wait between attempts.

        Raises:
            SummaryError: Classified failure (see ``ErrorKind``).
        """
        key = (api_key if api_key is not None else self.settings.api_key).strip()
        if not key:
            raise SummaryError(
                ErrorKind.MISSING_API_KEY,
                "Please configure your OpenRouter API key in settings",
            )

        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise cancelled()

            try:
                response = self._attempt(request, key)
            except SummaryError as e:
                if not e.retryable:
                    log.error(f"Summary request failed (not retryable): {e.message}")
                    raise
                log.warning(
                    f"Summary request failed (attempt {attempt}/{self.MAX_ATTEMPTS}): "
                    f"{e.message}"
                )
                if attempt == self.MAX_ATTEMPTS:
                    raise
                self._wait(self.retry_delay * attempt, cancel_event)
                continue

            response.attempts = attempt
            return response

    def _wait(self, delay: float, cancel_event: threading.Event | None) -> None:
        """Back off before the next attempt; wake early on cancellation."""
        if delay <= 0:
            return
        if cancel_event is None:
            time.sleep(delay)
        elif cancel_event.wait(delay):
            raise cancelled()

    def _headers(self, api_key: str) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "X-Title": APP_TITLE,
        }
        if self.settings.app_url:
            headers["HTTP-Referer"] = self.settings.app_url
        return headers

    def _attempt(self, request: SummaryRequest, api_key: str) -> SummaryResponse:
        """Issue one HTTP call and classify the outcome."""
        try:
            response = self._http.post(
                self.endpoint,
                json=request.to_payload(),
                headers=self._headers(api_key),
            )
        except httpx.TimeoutException as e:
            raise SummaryError(ErrorKind.NETWORK_ERROR, f"Request timed out: {e}")
        except httpx.TransportError as e:
            raise SummaryError(ErrorKind.NETWORK_ERROR, f"Network error: {e}")
        except httpx.DecodingError as e:
            raise SummaryError(
                ErrorKind.DECODE_ERROR, f"Malformed response body: {e}", retryable=False
            )
        except httpx.RequestError as e:
            raise SummaryError(ErrorKind.NETWORK_ERROR, f"Request failed: {e}")

        if response.status_code != 200:
            raise self._status_error(response)

        return self._parse_body(response)

    def _status_error(self, response: httpx.Response) -> SummaryError:
        """Map a non-200 status to a typed error."""
        code = response.status_code
        if code == 401:
            return SummaryError(ErrorKind.INVALID_API_KEY, "Invalid API key", code=code)
        if code == 402:
            return SummaryError(
                ErrorKind.INSUFFICIENT_CREDITS, "Insufficient credits", code=code
            )
        if code == 429:
            return SummaryError(ErrorKind.RATE_LIMITED, "Rate limited", code=code)

        detail = _error_message(_safe_json(response))
        message = f"API error: {code}" + (f" ({detail})" if detail else "")
        return SummaryError(ErrorKind.API_ERROR, message, code=code, retryable=True)

    def _parse_body(self, response: httpx.Response) -> SummaryResponse:
        """Pull content and usage out of a 200 response body."""
        try:
            data = response.json()
        except ValueError as e:
            raise SummaryError(ErrorKind.DECODE_ERROR, f"Malformed JSON response: {e}")

        if not isinstance(data, dict):
            raise SummaryError(ErrorKind.DECODE_ERROR, "Response body is not an object")

        if data.get("error"):
            message = _error_message(data) or "API error"
            raise SummaryError(ErrorKind.API_ERROR, message, retryable=False)

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise SummaryError(ErrorKind.EMPTY_RESPONSE, "No response")

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise SummaryError(ErrorKind.EMPTY_RESPONSE, "Response has no message content")

        return SummaryResponse(
            content=content.strip(),
            usage=_parse_usage(data.get("usage")),
            model=data["model"] if isinstance(data.get("model"), str) else None,
        )


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(data: Any) -> str | None:
    """Extract ``error.message`` from an error body, if present."""
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return str(message) if message else None
    if error:
        return str(error)
    return None


def _parse_usage(raw: Any) -> Usage | None:
    """Usage is optional; anything unparseable is dropped."""
    if not isinstance(raw, dict):
        return None
    try:
        return Usage.model_validate({k: v for k, v in raw.items() if v is not None})
    except ValidationError:
        log.debug(f"Ignoring malformed usage block: {raw}")
        return None
