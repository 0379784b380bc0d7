"""Conversation core.

Module structure:
- models.py: Transcript entries and stream events
- transcript.py: The locally rendered conversation
- session.py: History shared with the remote service
- stream.py: Producer task and channel per streamed reply
- supervisor.py: One active stream at a time, supersession
"""

from .models import (
    ConversationEntry,
    Fragment,
    Role,
    StreamClosed,
    StreamEvent,
    StreamFailed,
)
from .session import ChatSession
from .stream import FragmentChannel, StreamHandle, TokenStreamAdapter
from .supervisor import StreamState, StreamSupervisor
from .transcript import Transcript

__all__ = [
    "ChatSession",
    "ConversationEntry",
    "Fragment",
    "FragmentChannel",
    "Role",
    "StreamClosed",
    "StreamEvent",
    "StreamFailed",
    "StreamHandle",
    "StreamState",
    "StreamSupervisor",
    "TokenStreamAdapter",
    "Transcript",
]
