"""Terminal UI module.

Module structure:
- widgets.py: Transcript viewport and prompt line
- styles.py: CSS layout
- app.py: Event loop wiring (submit, resize, stream updates, quit)
"""

from .app import ChatApp, StreamUpdate, run_chat_app
from .widgets import ChatViewport, PromptInput

__all__ = [
    "ChatApp",
    "ChatViewport",
    "PromptInput",
    "StreamUpdate",
    "run_chat_app",
]
