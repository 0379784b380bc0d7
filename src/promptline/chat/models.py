"""Data models for the conversation core.

Hides the representation of transcript entries and of the events a
streamed reply produces.
"""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Author of a transcript entry."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationEntry:
    """One rendered turn of the conversation.

    Assistant entries grow while their reply streams and become final when
    the stream ends; user entries are final from the start.
    """

    role: Role
    text: str
    final: bool = False
    error: bool = False


@dataclass(frozen=True)
class Fragment:
    """A piece of reply text for the entry at ``index``."""

    generation: int
    index: int
    text: str


@dataclass(frozen=True)
class StreamClosed:
    """The remote stream ended normally."""

    generation: int
    index: int


@dataclass(frozen=True)
class StreamFailed:
    """The remote stream ended with a transport or service error."""

    generation: int
    index: int
    error: str


StreamEvent = Fragment | StreamClosed | StreamFailed
