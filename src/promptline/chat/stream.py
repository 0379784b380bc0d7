"""Token stream adapter.

Runs one producer task per reply and hands fragments to the UI loop through
an unbuffered channel: the producer does not pull the next chunk from the
remote stream until the previous fragment has been taken.
"""

import asyncio
import logging
from dataclasses import dataclass

from .models import Fragment, StreamClosed, StreamEvent, StreamFailed
from .session import ChatSession

logger = logging.getLogger(__name__)


class FragmentChannel:
    """Single-producer, single-consumer rendezvous channel."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[StreamEvent] = asyncio.Queue(maxsize=1)

    async def send(self, event: StreamEvent) -> None:
        """Hand an event over, returning once the consumer has taken it."""
        await self._queue.put(event)
        await self._queue.join()

    async def receive(self) -> StreamEvent:
        event = await self._queue.get()
        self._queue.task_done()
        return event

    @property
    def pending(self) -> bool:
        """True while an event waits for the consumer."""
        return not self._queue.empty()


@dataclass
class StreamHandle:
    """One in-flight reply.

    Attributes:
        generation: Stream number, unique per supervisor
        target_index: Transcript index the reply text lands in
        channel: Where the producer delivers events
        task: The producer task
    """

    generation: int
    target_index: int
    channel: FragmentChannel
    task: asyncio.Task

    @property
    def done(self) -> bool:
        return self.task.done()

    async def read(self) -> StreamEvent:
        """Wait for the next event of this stream."""
        return await self.channel.receive()

    def cancel(self) -> None:
        """Cancel the producer, closing the remote call."""
        if not self.task.done():
            self.task.cancel()


class TokenStreamAdapter:
    """Turns a session's streamed reply into ordered stream events."""

    def open(self, session: ChatSession, generation: int, target_index: int) -> StreamHandle:
        """Start fetching a reply for the session's current history.

        The request is snapshotted here, so later history changes never leak
        into this stream. Must be called with a running event loop.
        """
        messages = session.request_messages()
        channel = FragmentChannel()
        task = asyncio.create_task(
            self._produce(session, messages, channel, generation, target_index),
            name=f"promptline-stream-{generation}",
        )
        return StreamHandle(
            generation=generation,
            target_index=target_index,
            channel=channel,
            task=task,
        )

    async def _produce(
        self,
        session: ChatSession,
        messages: list,
        channel: FragmentChannel,
        generation: int,
        index: int,
    ) -> None:
        response = None
        count = 0
        try:
            response = await session.stream(messages)
            async for text in response:
                if not text:
                    continue
                count += 1
                await channel.send(Fragment(generation=generation, index=index, text=text))
        except asyncio.CancelledError:
            logger.debug("Stream %d cancelled after %d fragments", generation, count)
            raise
        except Exception as e:
            logger.exception("Stream %d failed after %d fragments", generation, count)
            error = str(e) or type(e).__name__
            await channel.send(StreamFailed(generation=generation, index=index, error=error))
            return
        finally:
            if response is not None:
                await response.aclose()

        logger.debug("Stream %d finished with %d fragments", generation, count)
        await channel.send(StreamClosed(generation=generation, index=index))
