from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, StreamingResponse


class LLMProvider(ABC):
    """Abstract base class for remote chat services.

    This module hides the design decision of which service answers prompts.
    Implementations own the client setup, the credential, the conversion of
    ``ChatMessage`` history into the service's wire format and the extraction
    of text from response chunks.

    Supports the async context manager protocol:
        async with provider:
            stream = await provider.chat_completion_stream(messages)
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Default model name used when a call does not override it."""

    @abstractmethod
    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        **kwargs: Any
    ) -> StreamingResponse:
        """Open a streaming chat completion.

        Args:
            messages: Conversation history, optionally led by a system message
            model: Model to use (None uses provider's default)
            temperature: Sampling temperature (0.0 to 2.0)
            **kwargs: Provider-specific parameters

        Returns:
            StreamingResponse yielding text fragments in arrival order.
            Chunks without usable text are never yielded.

        Raises:
            Exception: Provider-specific transport errors, either here or
                while iterating the returned stream
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Close the provider, tolerating an already-closed event loop.

        httpx/anyio can raise "Event loop is closed" while tearing down
        connections after the loop has stopped:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
