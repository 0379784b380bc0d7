"""Stream supervisor.

Coordinates at most one streamed reply at a time and is the only writer of
both the transcript and the session history. A prompt submitted while a
reply is streaming supersedes it: the old remote call is cancelled, the text
already shown is kept as that turn's reply, and events still in flight for
the old stream are ignored.
"""

import logging
from enum import Enum

from .models import Fragment, Role, StreamClosed, StreamEvent, StreamFailed
from .session import ChatSession
from .stream import StreamHandle, TokenStreamAdapter
from .transcript import Transcript

logger = logging.getLogger(__name__)

ERROR_PREFIX = "error: "


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"


class StreamSupervisor:
    """Two-state machine (Idle, Streaming) driving replies into the transcript."""

    def __init__(
        self,
        session: ChatSession,
        transcript: Transcript | None = None,
        adapter: TokenStreamAdapter | None = None,
    ) -> None:
        self.session = session
        self.transcript = transcript if transcript is not None else Transcript()
        self._adapter = adapter or TokenStreamAdapter()
        self._active: StreamHandle | None = None
        self._generation = 0

    @property
    def state(self) -> StreamState:
        return StreamState.STREAMING if self._active is not None else StreamState.IDLE

    @property
    def is_streaming(self) -> bool:
        return self._active is not None

    @property
    def active(self) -> StreamHandle | None:
        return self._active

    def submit(self, prompt: str) -> StreamHandle:
        """Record a prompt and start streaming its reply.

        Any reply still streaming is superseded before anything for the new
        prompt is created.
        """
        if self._active is not None:
            self._supersede()

        self.transcript.append_entry(Role.USER, prompt, final=True)
        self.session.add_user_message(prompt)

        self._generation += 1
        handle = self._adapter.open(
            self.session,
            generation=self._generation,
            target_index=len(self.transcript),
        )
        self._active = handle
        logger.info("Stream %d started for entry %d", handle.generation, handle.target_index)
        return handle

    async def read(self, handle: StreamHandle) -> StreamEvent:
        """Wait for the next event of ``handle``."""
        return await handle.read()

    def apply(self, event: StreamEvent) -> bool:
        """Apply a stream event to the transcript and session.

        Returns:
            False if the event belongs to a stream that is no longer active
        """
        handle = self._active
        if handle is None or event.generation != handle.generation:
            logger.debug("Dropping stale %s from stream %d", type(event).__name__, event.generation)
            return False

        if isinstance(event, Fragment):
            self.transcript.extend_entry(handle.target_index, event.text)
        elif isinstance(event, StreamClosed):
            # A reply with no fragments still gets its (empty) entry
            self._finish(handle, create=True)
            logger.info("Stream %d complete", handle.generation)
        elif isinstance(event, StreamFailed):
            self._finish(handle, create=False)
            self.transcript.append_entry(
                Role.ASSISTANT, ERROR_PREFIX + event.error, final=True, error=True
            )
            logger.warning("Stream %d failed: %s", handle.generation, event.error)
        return True

    def shutdown(self) -> None:
        """Cancel the in-flight stream, if any, without recording it."""
        if self._active is not None:
            logger.info("Stream %d abandoned at shutdown", self._active.generation)
            self._active.cancel()
            self._active = None

    def _supersede(self) -> None:
        handle = self._active
        self._finish(handle, create=False)
        logger.info("Stream %d superseded", handle.generation)

    def _finish(self, handle: StreamHandle, create: bool) -> None:
        """Freeze the reply entry and record its text in the session.

        The session always gets the reply, even an empty one, so user and
        assistant turns stay paired; empty replies are never sent upstream.
        """
        self._active = None
        handle.cancel()
        if create or handle.target_index < len(self.transcript):
            self.transcript.finalize(handle.target_index)
        self.session.add_assistant_message(self.transcript.text_at(handle.target_index))
