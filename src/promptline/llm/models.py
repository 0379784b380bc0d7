from collections.abc import AsyncIterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StreamingResponse:
    """Async iterator over the text fragments of one streamed reply.

    Token usage becomes available once the stream is exhausted.

    Usage:
        stream = await provider.chat_completion_stream(messages)
        try:
            async for fragment in stream:
                print(fragment, end="")
        finally:
            await stream.aclose()
        print(stream.usage)
    """

    def __init__(self, async_iter: AsyncIterator[str]):
        self._iter = async_iter
        self._usage: dict[str, Any] | None = None
        self._closed = False

    @property
    def usage(self) -> dict[str, Any] | None:
        """Token usage info (available after iteration completes)."""
        return self._usage

    @property
    def closed(self) -> bool:
        return self._closed

    def set_usage(self, usage: dict[str, Any]) -> None:
        """Set token usage info (called by the provider at end of stream)."""
        self._usage = usage

    async def aclose(self) -> None:
        """Close the underlying generator, releasing its connection.

        Safe to call more than once and on an exhausted stream.
        """
        if self._closed:
            return
        self._closed = True
        aclose = getattr(self._iter, "aclose", None)
        if aclose is not None:
            await aclose()

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        return await self._iter.__anext__()


class ChatMessage(BaseModel):
    """A message in the history sent to the remote service."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")
