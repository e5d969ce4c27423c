import httpx
import pytest

from src.core import SlackConfig


class FakePost:
    """Stands in for `httpx.post`: records calls and replays queued replies."""

    def __init__(self):
        self.calls = []
        self._replies = []

    def reply(self, payload=None, status=200, content=b""):
        self._replies.append((status, payload, content))
        return self

    def fail(self, exc):
        self._replies.append(exc)
        return self

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if not self._replies:
            raise AssertionError(f"unexpected POST to {url}")
        nxt = self._replies.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        status, payload, content = nxt
        request = httpx.Request("POST", url)
        if payload is not None:
            return httpx.Response(status, json=payload, request=request)
        return httpx.Response(status, content=content, request=request)

    def form(self, i):
        """Multipart form fields sent by call `i`, as a plain dict."""
        parts = self.calls[i][1].get("files") or {}
        return {k: v[1] for k, v in parts.items()}

    def content_type(self, i):
        url, kwargs = self.calls[i]
        request = httpx.Request(
            "POST", url,
            headers=kwargs.get("headers"),
            content=kwargs.get("content"),
            data=kwargs.get("data"),
            files=kwargs.get("files"),
        )
        return request.headers.get("content-type")

    @property
    def urls(self):
        return [url for url, _ in self.calls]


@pytest.fixture
def fake_post(monkeypatch):
    fake = FakePost()
    monkeypatch.setattr(httpx, "post", fake)
    return fake


@pytest.fixture
def config():
    return SlackConfig(token="xoxb-test", api_base="https://slack.test/api")


@pytest.fixture
def no_token_config():
    return SlackConfig(token=None, api_base="https://slack.test/api")
