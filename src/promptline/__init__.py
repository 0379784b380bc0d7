"""
promptline: a terminal chat client that streams Gemini replies into a
scrolling transcript.
"""

__version__ = "0.1.0"

from .chat import ChatSession, StreamState, StreamSupervisor, Transcript
from .config import ChatConfig, load_config
from .exceptions import ConfigurationError, PromptlineError, StartupError

__all__ = [
    "ChatConfig",
    "ChatSession",
    "ConfigurationError",
    "PromptlineError",
    "StartupError",
    "StreamState",
    "StreamSupervisor",
    "Transcript",
    "load_config",
]
