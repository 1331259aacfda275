import json
import os

import httpx
import pytest
from fastapi.testclient import TestClient

# app.py reads its configuration at import time
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("OPENAI_API_BASE_URL", "https://llm.test/v1")

from rephraser.llm import LLMClient  # noqa: E402
from rephraser.llm.pipeline import RephrasePipeline  # noqa: E402


def completion_body(content="Hello there.", usage=None):
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-3.5-turbo",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": usage
        or {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
    }


def delta_frame(content):
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]})


class RecordingStream(httpx.AsyncByteStream):
    """Event-stream body that remembers whether the client closed it."""

    def __init__(self, content: bytes):
        self.content = content
        self.closed = False

    async def __aiter__(self):
        for line in self.content.splitlines(keepends=True):
            yield line

    async def aclose(self):
        self.closed = True


class FakeUpstream:
    """Stands in for the completion service behind an httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = completion_body()
        self.stream_lines = None
        self.error = None
        self.streams = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.stream_lines is not None:
            content = "".join(line + "\n" for line in self.stream_lines)
            stream = RecordingStream(content.encode("utf-8"))
            self.streams.append(stream)
            return httpx.Response(
                self.status_code,
                stream=stream,
                headers={"content-type": "text/event-stream"},
            )
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status_code, json=self.body)
        return httpx.Response(self.status_code, text=self.body)

    def payload(self, index=-1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def llm_client(upstream):
    return LLMClient(
        api_key="test-key",
        base_url="https://llm.test/v1",
        transport=httpx.MockTransport(upstream),
    )


@pytest.fixture
def server(monkeypatch, llm_client):
    import app as server

    monkeypatch.setattr(server, "pipeline", RephrasePipeline(llm_client=llm_client))
    return server


@pytest.fixture
def client(server):
    with TestClient(server.app) as test_client:
        yield test_client
