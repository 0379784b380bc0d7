"""Pytest configuration and shared fixtures."""
import asyncio
import os
from typing import Any

import pytest

from promptline.chat import ChatSession, StreamSupervisor
from promptline.llm import ChatMessage, LLMProvider, StreamingResponse


class ScriptedProvider(LLMProvider):
    """Provider that replays scripted replies instead of calling Gemini.

    Each reply is either an exception (raised when the stream is opened) or a
    list whose items are yielded in order: strings and None are fragments,
    an asyncio.Event pauses the stream until set, an exception is raised
    mid-stream.
    """

    def __init__(self, *replies: Any, model: str = "fake-model") -> None:
        self._model = model
        self._replies = list(replies)
        self.requests: list[list[ChatMessage]] = []
        self.pulled = 0
        self.finished_streams = 0
        self.closed = False

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        **kwargs: Any
    ) -> StreamingResponse:
        self.requests.append(list(messages))
        reply = self._replies.pop(0) if self._replies else []
        if isinstance(reply, BaseException):
            raise reply
        return StreamingResponse(self._generate(reply))

    async def _generate(self, script: list):
        try:
            for item in script:
                if isinstance(item, asyncio.Event):
                    await item.wait()
                    continue
                if isinstance(item, BaseException):
                    raise item
                self.pulled += 1
                yield item
        finally:
            self.finished_streams += 1

    async def close(self) -> None:
        self.closed = True


async def _drain(supervisor: StreamSupervisor, handle) -> list:
    """Read and apply events until the supervisor is idle."""
    events = []
    while supervisor.is_streaming:
        event = await supervisor.read(handle)
        supervisor.apply(event)
        events.append(event)
    return events


@pytest.fixture
def drain():
    return _drain


@pytest.fixture
def scripted():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


@pytest.fixture
def make_supervisor():
    """Build a supervisor over a ScriptedProvider with the given replies."""
    def _make(*replies: Any) -> tuple[StreamSupervisor, ScriptedProvider]:
        provider = ScriptedProvider(*replies)
        return StreamSupervisor(ChatSession(provider)), provider
    return _make


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Environment without promptline settings, logging into tmp_path."""
    for name in list(os.environ):
        if name == "GOOGLE_CLI" or name == "GEMINI_MODEL" or name.startswith("PROMPTLINE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PROMPTLINE_LOG_FILE", str(tmp_path / "debug.log"))
    return monkeypatch


@pytest.fixture
def api_keys():
    """Return API keys from environment."""
    return {"gemini": os.getenv("GOOGLE_CLI")}
