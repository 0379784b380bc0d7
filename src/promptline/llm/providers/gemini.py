"""Google Gemini provider.

Uses the official Google GenAI SDK for async streaming completions.
Reference: https://github.com/googleapis/python-genai

Note: Gemini streams can contain chunks without any text (safety filtering,
usage-only trailer chunks, empty candidates). Such chunks are dropped here
so callers only ever see non-empty fragments.
"""

import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from google import genai
from google.genai import types

from ..base import LLMProvider
from ..models import ChatMessage, StreamingResponse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


class GeminiProvider(LLMProvider):
    """Google Gemini chat provider.

    Hidden design decisions:
    - Google GenAI client initialization
    - Message format conversion (assistant -> model role, system instruction)
    - Extraction of text from partial or malformed chunks
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        **client_kwargs: Any
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google AI API key
            model: Default model (gemini-2.5-flash, gemini-2.5-pro, ...)
            **client_kwargs: Additional kwargs for genai.Client
        """
        self._model = model
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(self, messages: list[ChatMessage]) -> tuple[str | None, list[types.Content]]:
        """Convert ChatMessage list to Gemini format.

        Messages with empty content are skipped; Gemini rejects empty parts.

        Returns:
            Tuple of (system_instruction, contents)
        """
        system_instruction = None
        contents = []

        for msg in messages:
            if msg.role == "system":
                system_instruction = msg.content
            elif not msg.content:
                continue
            elif msg.role == "user":
                contents.append(types.Content(
                    role="user",
                    parts=[types.Part(text=msg.content)]
                ))
            elif msg.role == "assistant":
                contents.append(types.Content(
                    role="model",
                    parts=[types.Part(text=msg.content)]
                ))

        return system_instruction, contents

    @staticmethod
    def _extract_content(chunk: Any) -> str:
        """Extract text from a streamed chunk, returning "" when it has none.

        Args:
            chunk: Gemini GenerateContentResponse (possibly None or partial)
        """
        if chunk is None:
            return ""

        candidates = getattr(chunk, "candidates", None)
        if candidates:
            content = getattr(candidates[0], "content", None)
            parts = getattr(content, "parts", None) if content else None
            if parts:
                texts = [part.text for part in parts if getattr(part, "text", None)]
                if texts:
                    return "".join(texts)
        return ""

    @staticmethod
    def _extract_usage(chunk: Any) -> dict[str, int] | None:
        metadata = getattr(chunk, "usage_metadata", None)
        if not metadata:
            return None
        return {
            "prompt_tokens": metadata.prompt_token_count or 0,
            "completion_tokens": metadata.candidates_token_count or 0,
            "total_tokens": metadata.total_token_count or 0,
        }

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        **kwargs: Any
    ) -> StreamingResponse:
        """Open a streaming completion for the given history.

        Args:
            messages: Conversation history (system message optional)
            model: Model to use (overrides default)
            temperature: Sampling temperature
            **kwargs: Additional GenerateContentConfig fields

        Returns:
            StreamingResponse yielding non-empty text fragments
        """
        model_to_use = model or self._model
        system_instruction, contents = self._convert_messages(messages)

        config = types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_instruction,
            **kwargs
        )

        logger.debug("Opening stream: model=%s turns=%d", model_to_use, len(contents))
        response = StreamingResponse(
            self._stream_generator(
                model_to_use, contents, config, on_usage=lambda usage: response.set_usage(usage)
            )
        )
        return response

    async def _stream_generator(
        self,
        model: str,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
        on_usage: Callable[[dict[str, int]], None],
    ) -> AsyncIterator[str]:
        """Yield text fragments, dropping chunks without text."""
        usage = None

        stream = await self._client.aio.models.generate_content_stream(
            model=model, contents=contents, config=config
        )
        try:
            async for chunk in stream:
                # Usage metadata arrives on the final chunk
                usage = self._extract_usage(chunk) or usage

                text = self._extract_content(chunk)
                if text:
                    yield text
                else:
                    logger.debug("Skipping chunk without text")
        finally:
            # Closing the SDK generator releases its HTTP response
            await stream.aclose()

        if usage:
            on_usage(usage)

    async def close(self) -> None:
        """Close the client's async transport."""
        aclose = getattr(self._client.aio, "aclose", None)
        if aclose is not None:
            await aclose()
