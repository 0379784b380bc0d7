"""Main Textual TUI application.

Every change to the transcript and the viewport happens in this app's
message handlers, on the app's event loop. Streamed replies are read by a
worker that awaits exactly one event and posts it back as a message; the
handler applies it and only then schedules the next read.
"""

import asyncio
import logging

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Footer, Header, Input
from textual.worker import Worker, WorkerState

from ..chat import (
    ChatSession,
    StreamEvent,
    StreamFailed,
    StreamHandle,
    StreamSupervisor,
)
from .styles import APP_CSS
from .widgets import ChatViewport, PromptInput

logger = logging.getLogger(__name__)

STREAM_GROUP = "stream"
FINISHED_STATES = (WorkerState.SUCCESS, WorkerState.ERROR, WorkerState.CANCELLED)


class StreamUpdate(Message):
    """Posted by the read worker when a stream event arrives."""

    def __init__(self, event: StreamEvent) -> None:
        super().__init__()
        self.event = event


class ChatApp(App):
    """Terminal chat client: transcript viewport above a prompt line."""

    CSS = APP_CSS
    TITLE = "promptline"

    BINDINGS = [
        Binding("escape", "quit", "Quit", priority=True),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
        Binding("ctrl+y", "copy_last_reply", "Copy Reply", priority=True),
    ]

    def __init__(self, session: ChatSession) -> None:
        super().__init__()
        self.supervisor = StreamSupervisor(session)
        # Stream generation each running read worker belongs to
        self._readers: dict[Worker, int] = {}

    @property
    def transcript(self):
        return self.supervisor.transcript

    def compose(self) -> ComposeResult:
        yield Header()
        yield ChatViewport(id="viewport")
        yield PromptInput(id="prompt")
        yield Footer()

    def on_mount(self) -> None:
        self._update_status()
        self.query_one("#prompt", PromptInput).focus()
        logger.info("UI started with model %s", self.supervisor.session.model)

    def on_unmount(self) -> None:
        self.supervisor.shutdown()

    def on_resize(self, event: events.Resize) -> None:
        logger.debug("Resized to %dx%d", event.size.width, event.size.height)
        # The first resize can arrive before the widgets are composed, and
        # every resize arrives before the screen is laid out at the new size
        if self.query(ChatViewport):
            self.call_after_refresh(self._refresh_viewport)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Start (or supersede) a reply for the submitted prompt."""
        prompt = event.value
        event.input.clear()
        if not prompt.strip():
            return

        handle = self.supervisor.submit(prompt)
        self._refresh_viewport()
        self._update_status()
        self._start_read(handle)

    def on_stream_update(self, message: StreamUpdate) -> None:
        event = message.event
        if not self.supervisor.apply(event):
            return

        self._refresh_viewport()
        if isinstance(event, StreamFailed):
            self.notify(f"Error: {event.error[:50]}", severity="error", timeout=5)

        if self.supervisor.is_streaming:
            self._start_read(self.supervisor.active)
        else:
            self._update_status()

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Turn a crashed read into a stream failure so the loop returns to idle.

        Only a reader of the active stream can fail it; a reader of a
        superseded stream that crashes is just logged.
        """
        worker = event.worker
        if worker.group != STREAM_GROUP or event.state not in FINISHED_STATES:
            return
        generation = self._readers.pop(worker, None)
        if event.state != WorkerState.ERROR:
            return

        error = worker.error
        logger.error("Stream reader for stream %s failed: %r", generation, error)
        handle = self.supervisor.active
        if handle is None or handle.generation != generation:
            return
        self.post_message(StreamUpdate(StreamFailed(
            generation=handle.generation,
            index=handle.target_index,
            error=str(error) or type(error).__name__,
        )))

    def _start_read(self, handle: StreamHandle) -> None:
        worker = self._read_next(handle)
        self._readers[worker] = handle.generation

    @work(exclusive=True, group=STREAM_GROUP, exit_on_error=False)
    async def _read_next(self, handle: StreamHandle) -> None:
        """Await one event of ``handle`` and hand it to the event loop.

        Starting a new read cancels the previous one, which is what detaches
        the UI from a superseded stream.
        """
        event = await self.supervisor.read(handle)
        self.post_message(StreamUpdate(event))

    def _refresh_viewport(self) -> None:
        viewport = self.query_one("#viewport", ChatViewport)
        if len(self.transcript):
            viewport.set_content(self.transcript.render())
        viewport.goto_bottom()

    def _update_status(self) -> None:
        self.sub_title = f"{self.supervisor.session.model} | {self.supervisor.state.value}"

    def action_copy_last_reply(self) -> None:
        """Copy the last assistant reply to the clipboard."""
        reply = self.transcript.last_reply()
        if reply:
            self.copy_to_clipboard(reply)
            self.notify("Reply copied", timeout=2)
        else:
            self.notify("No reply to copy", severity="warning", timeout=2)


async def run_chat_app(session: ChatSession) -> int:
    """Run the TUI until the user quits.

    Args:
        session: Chat session the app sends prompts through

    Returns:
        The app's return code (0 on a normal quit)
    """
    app = ChatApp(session)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await session.close()
    return app.return_code or 0
