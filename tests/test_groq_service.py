"""
Groq client tests: request payload and failure classification
"""
import pytest
import requests

from cineai.services.groq_service import GroqClient
from cineai.utils.errors import UpstreamErrorKind, UpstreamUnavailable


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload


class FakeSession:
    def __init__(self, outcome):
        self.outcome = outcome
        self.posts = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_complete_sends_json_mode_request():
    session = FakeSession(FakeResponse(200, completion('{"movies": []}')))
    client = GroqClient(api_key="key", session=session)

    assert client.complete("system", "space movies") == '{"movies": []}'

    sent = session.posts[0]
    assert sent["timeout"] == 30.0
    assert sent["headers"]["Authorization"] == "Bearer key"
    assert sent["json"]["response_format"] == {"type": "json_object"}
    assert sent["json"]["temperature"] == 0.7
    assert sent["json"]["max_tokens"] == 1000
    assert [m["role"] for m in sent["json"]["messages"]] == ["system", "user"]


def test_empty_choices_return_empty_text():
    client = GroqClient(api_key="key", session=FakeSession(FakeResponse(200, {"choices": []})))
    assert client.complete("system", "anything") == ""


@pytest.mark.parametrize("status_code, kind", [
    (400, UpstreamErrorKind.BAD_REQUEST),
    (401, UpstreamErrorKind.AUTH_FAILED),
    (429, UpstreamErrorKind.RATE_LIMITED),
    (500, UpstreamErrorKind.UNAVAILABLE),
    (503, UpstreamErrorKind.UNAVAILABLE),
])
def test_http_failures_are_classified(status_code, kind):
    response = FakeResponse(status_code, {"error": {"message": "provider says no"}})
    client = GroqClient(api_key="key", session=FakeSession(response))
    with pytest.raises(UpstreamUnavailable) as exc_info:
        client.complete("system", "anything")
    assert exc_info.value.kind == kind


def test_timeout_is_classified():
    client = GroqClient(api_key="key", session=FakeSession(requests.Timeout("slow")))
    with pytest.raises(UpstreamUnavailable) as exc_info:
        client.complete("system", "anything")
    assert exc_info.value.kind == UpstreamErrorKind.TIMEOUT


def test_missing_key_is_not_configured():
    session = FakeSession(FakeResponse(200, completion("unused")))
    client = GroqClient(api_key=None, session=session)
    with pytest.raises(UpstreamUnavailable) as exc_info:
        client.complete("system", "anything")
    assert exc_info.value.kind == UpstreamErrorKind.NOT_CONFIGURED
    assert session.posts == []


def test_check_connection_reports_failure_without_raising():
    client = GroqClient(api_key="key", session=FakeSession(FakeResponse(401, {"error": {"message": "bad key"}})))
    result = client.check_connection()
    assert result["success"] is False
    assert result["details"]["error"] == "auth_failed"
