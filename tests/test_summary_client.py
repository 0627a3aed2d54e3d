"""Unit tests for core/summary_client.py.
Uses httpx.MockTransport so no network access is needed.
"""
import json
import threading

import httpx
import pytest

from chapter_summarizer.core.summary_client import SummaryClient
from chapter_summarizer.errors import ErrorKind, SummaryError

OK_BODY = {
    "model": "test/model",
    "choices": [{"message": {"role": "assistant", "content": "  A summary.  "}}],
    "usage": {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150},
}


# ---------------------------------------------------------------------------
# Helper: client whose transport replays scripted responses
# ---------------------------------------------------------------------------
class Script:
    """Callable transport handler returning queued responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def _client(settings, script):
    http = httpx.Client(transport=httpx.MockTransport(script))
    return SummaryClient(settings, http_client=http)


def _request(client):
    return client.build_request("Chapter 1", "Some chapter text.")


class TestRequestConstruction:

    def test_payload_and_headers(self, settings):
        script = Script(httpx.Response(200, json=OK_BODY))
        client = _client(settings, script)
        client.summarize(_request(client))

        sent = script.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == settings.endpoint
        assert sent.headers["Authorization"] == "Bearer sk-or-v1-test"
        assert sent.headers["Content-Type"] == "application/json"

        body = json.loads(sent.content)
        assert body["model"] == "test/model"
        assert body["temperature"] == 0.7
        assert body["max_tokens"] == 500
        assert body["messages"] == [
            {"role": "system", "content": "Summarize."},
            {"role": "user", "content": "Chapter: Chapter 1\n\nSome chapter text."},
        ]

    def test_referer_sent_when_configured(self, settings):
        settings = settings.model_copy(update={"app_url": "https://example.org/app"})
        script = Script(httpx.Response(200, json=OK_BODY))
        client = _client(settings, script)
        client.summarize(_request(client))
        assert script.requests[0].headers["HTTP-Referer"] == "https://example.org/app"


class TestSuccess:

    def test_content_and_usage(self, settings):
        client = _client(settings, Script(httpx.Response(200, json=OK_BODY)))
        response = client.summarize(_request(client))
        assert response.content == "A summary."
        assert response.usage.total_tokens == 150
        assert response.attempts == 1

    def test_usage_optional(self, settings):
        body = {"choices": [{"message": {"content": "Short."}}]}
        client = _client(settings, Script(httpx.Response(200, json=body)))
        response = client.summarize(_request(client))
        assert response.content == "Short."
        assert response.usage is None

    def test_malformed_usage_ignored(self, settings):
        body = {"choices": [{"message": {"content": "Ok."}}], "usage": "lots"}
        client = _client(settings, Script(httpx.Response(200, json=body)))
        assert client.summarize(_request(client)).usage is None

    def test_recovers_after_transient_failure(self, settings):
        script = Script(
            httpx.Response(503, json={"error": {"message": "overloaded"}}),
            httpx.Response(200, json=OK_BODY),
        )
        client = _client(settings, script)
        response = client.summarize(_request(client))
        assert response.content == "A summary."
        assert response.attempts == 2
        assert len(script.requests) == 2


class TestErrorClassification:

    @pytest.mark.parametrize(
        "status,kind",
        [(401, ErrorKind.INVALID_API_KEY), (402, ErrorKind.INSUFFICIENT_CREDITS)],
    )
    def test_auth_and_credit_errors_not_retried(self, settings, status, kind):
        script = Script(httpx.Response(status, json={"error": {"message": "no"}}))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == kind
        assert exc_info.value.code == status
        assert len(script.requests) == 1

    def test_rate_limited_three_attempts_then_raise(self, settings):
        script = Script(httpx.Response(429))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.RATE_LIMITED
        assert len(script.requests) == 3

    def test_other_status_retried_with_code(self, settings):
        script = Script(httpx.Response(500, text="boom"))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.API_ERROR
        assert exc_info.value.code == 500
        assert "500" in exc_info.value.message
        assert len(script.requests) == 3

    def test_error_field_in_200_not_retried(self, settings):
        body = {"error": {"message": "model not found"}}
        script = Script(httpx.Response(200, json=body))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.API_ERROR
        assert exc_info.value.message == "model not found"
        assert len(script.requests) == 1

    @pytest.mark.parametrize("body", [{"choices": []}, {"id": "x"}])
    def test_empty_choices_retried(self, settings, body):
        script = Script(httpx.Response(200, json=body))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.EMPTY_RESPONSE
        assert len(script.requests) == 3

    def test_malformed_json_not_retried(self, settings):
        script = Script(httpx.Response(200, text="{not json"))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.DECODE_ERROR
        assert len(script.requests) == 1

    def test_undecodable_body_not_retried(self, settings):
        script = Script(
            httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all"
            )
        )
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.DECODE_ERROR
        assert not exc_info.value.retryable
        assert len(script.requests) == 1

    def test_other_request_errors_are_network_errors(self, settings):
        script = Script(httpx.TooManyRedirects("redirect loop"))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.NETWORK_ERROR
        assert len(script.requests) == 3

    def test_network_error_retried(self, settings):
        script = Script(httpx.ConnectError("connection refused"))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.NETWORK_ERROR
        assert len(script.requests) == 3

    def test_timeout_is_network_error(self, settings):
        script = Script(httpx.ReadTimeout("too slow"))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.NETWORK_ERROR

    def test_last_error_surfaces(self, settings):
        script = Script(
            httpx.Response(429),
            httpx.ConnectError("down"),
            httpx.Response(200, json={"choices": []}),
        )
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.EMPTY_RESPONSE

    def test_missing_api_key_makes_no_request(self, settings):
        settings = settings.model_copy(update={"api_key": ""})
        script = Script(httpx.Response(200, json=OK_BODY))
        client = _client(settings, script)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client))
        assert exc_info.value.kind == ErrorKind.MISSING_API_KEY
        assert script.requests == []


class TestCancellation:

    def test_cancelled_before_first_attempt(self, settings):
        script = Script(httpx.Response(200, json=OK_BODY))
        client = _client(settings, script)
        event = threading.Event()
        event.set()
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client), cancel_event=event)
        assert exc_info.value.kind == ErrorKind.CANCELLED
        assert script.requests == []

    def test_cancel_during_backoff_stops_retries(self, settings):
        settings = settings.model_copy(update={"retry_delay": 5.0})
        event = threading.Event()

        def handler(request):
            # Cancel while the first failure is being handled
            event.set()
            return httpx.Response(429)

        http = httpx.Client(transport=httpx.MockTransport(handler))
        client = SummaryClient(settings, http_client=http)
        with pytest.raises(SummaryError) as exc_info:
            client.summarize(_request(client), cancel_event=event)
        assert exc_info.value.kind == ErrorKind.CANCELLED
