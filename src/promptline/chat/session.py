"""The conversation context shared with the remote service."""

import logging

from ..config import DEFAULT_SYSTEM_INSTRUCTION
from ..llm import ChatMessage, LLMProvider, StreamingResponse

logger = logging.getLogger(__name__)


class ChatSession:
    """Owns the authoritative message history sent with every request.

    The history is kept in lockstep with the rendered transcript: each user
    prompt and each finished (or cut short) assistant reply is recorded once,
    in that order.
    """

    def __init__(
        self,
        provider: LLMProvider,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
        model: str | None = None,
        temperature: float = 0.7,
    ) -> None:
        self._provider = provider
        self._system_instruction = system_instruction
        self._model = model
        self._temperature = temperature
        self._history: list[ChatMessage] = []

    @property
    def model(self) -> str:
        return self._model or self._provider.model

    @property
    def history(self) -> tuple[ChatMessage, ...]:
        return tuple(self._history)

    def add_user_message(self, text: str) -> None:
        self._history.append(ChatMessage(role="user", content=text))

    def add_assistant_message(self, text: str) -> None:
        self._history.append(ChatMessage(role="assistant", content=text))

    def request_messages(self) -> list[ChatMessage]:
        """Snapshot of the history to send, led by the system instruction."""
        messages = []
        if self._system_instruction:
            messages.append(ChatMessage(role="system", content=self._system_instruction))
        messages.extend(self._history)
        return messages

    async def stream(self, messages: list[ChatMessage]) -> StreamingResponse:
        """Open a streamed reply for a previously taken snapshot."""
        logger.debug("Requesting reply: model=%s messages=%d", self.model, len(messages))
        return await self._provider.chat_completion_stream(
            messages, model=self._model, temperature=self._temperature
        )

    async def close(self) -> None:
        await self._provider.close()
