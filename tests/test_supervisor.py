"""Unit tests for the stream supervisor."""
import asyncio

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from promptline.chat import (
    ChatSession,
    Fragment,
    StreamClosed,
    StreamState,
    StreamSupervisor,
)


def _history(supervisor: StreamSupervisor) -> list[tuple[str, str]]:
    return [(message.role, message.content) for message in supervisor.session.history]


class TestSingleTurn:
    """A prompt streamed to completion."""

    @pytest.mark.asyncio
    async def test_reply_lands_in_transcript_and_session(self, make_supervisor, drain):
        supervisor, _ = make_supervisor(["4"])

        handle = supervisor.submit("2+2?")
        assert supervisor.state is StreamState.STREAMING
        assert handle.target_index == 1

        await drain(supervisor, handle)

        assert supervisor.state is StreamState.IDLE
        assert supervisor.active is None
        assert supervisor.transcript.lines() == ["? 2+2?", "> 4"]
        assert supervisor.transcript[1].final
        assert _history(supervisor) == [("user", "2+2?"), ("assistant", "4")]

    @pytest.mark.asyncio
    async def test_reply_without_fragments_gets_empty_entry(self, make_supervisor, drain):
        supervisor, _ = make_supervisor([])

        handle = supervisor.submit("anything?")
        await drain(supervisor, handle)

        assert supervisor.transcript.lines() == ["? anything?", "> "]
        assert _history(supervisor) == [("user", "anything?"), ("assistant", "")]

    @pytest.mark.asyncio
    async def test_malformed_chunks_are_tolerated(self, make_supervisor, drain):
        supervisor, _ = make_supervisor(["Hi", None, " there"])

        handle = supervisor.submit("hello")
        await drain(supervisor, handle)

        assert supervisor.transcript[1].text == "Hi there"

    @pytest.mark.asyncio
    async def test_second_prompt_sends_full_history(self, make_supervisor, drain):
        supervisor, provider = make_supervisor(["4"], ["6"])

        await drain(supervisor, supervisor.submit("2+2?"))
        await drain(supervisor, supervisor.submit("3+3?"))

        contents = [(m.role, m.content) for m in provider.requests[1]]
        assert contents == [
            ("system", "answer concisely."),
            ("user", "2+2?"),
            ("assistant", "4"),
            ("user", "3+3?"),
        ]
        assert supervisor.transcript.lines() == ["? 2+2?", "> 4", "? 3+3?", "> 6"]

    @settings(
        max_examples=50,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(st.lists(st.text(min_size=1, max_size=10), max_size=15))
    def test_reply_is_concatenation_of_fragments(self, make_supervisor, drain, fragments):
        """Property test: final text is the fragments joined in delivery order."""
        async def run() -> str:
            supervisor, _ = make_supervisor(fragments)
            await drain(supervisor, supervisor.submit("go"))
            return supervisor.transcript[1].text

        assert asyncio.run(run()) == "".join(fragments)


class TestSupersession:
    """A new prompt submitted while a reply is streaming."""

    @pytest.mark.asyncio
    async def test_new_prompt_replaces_stream(self, make_supervisor, drain):
        gate = asyncio.Event()
        supervisor, provider = make_supervisor(["F1", gate, "F2"], ["B1"])

        old = supervisor.submit("A")
        supervisor.apply(await supervisor.read(old))

        new = supervisor.submit("B")

        assert new.generation != old.generation
        assert new.target_index == 3
        assert supervisor.transcript.lines() == ["? A", "> F1", "? B"]
        assert supervisor.transcript[1].final

        # A late fragment from the old stream is ignored
        stale = Fragment(generation=old.generation, index=old.target_index, text="F2")
        assert supervisor.apply(stale) is False

        gate.set()
        await drain(supervisor, new)

        assert supervisor.transcript.lines() == ["? A", "> F1", "? B", "> B1"]
        assert _history(supervisor) == [
            ("user", "A"),
            ("assistant", "F1"),
            ("user", "B"),
            ("assistant", "B1"),
        ]
        assert old.done
        assert provider.pulled == 2

    @pytest.mark.asyncio
    async def test_supersede_before_first_fragment(self, make_supervisor, drain):
        supervisor, provider = make_supervisor(["fresh"])

        old = supervisor.submit("A")
        new = supervisor.submit("B")

        # The old target index now holds B's prompt; stale text must not reach it
        assert old.target_index == 1
        assert supervisor.apply(Fragment(generation=old.generation, index=1, text="x")) is False
        assert supervisor.apply(StreamClosed(generation=old.generation, index=1)) is False

        await drain(supervisor, new)

        assert supervisor.transcript.lines() == ["? A", "? B", "> fresh"]
        # The superseded request was cancelled before it was sent
        assert len(provider.requests) == 1
        assert _history(supervisor) == [
            ("user", "A"),
            ("assistant", ""),
            ("user", "B"),
            ("assistant", "fresh"),
        ]

    @pytest.mark.asyncio
    async def test_superseded_producer_is_cancelled(self, make_supervisor):
        gate = asyncio.Event()
        supervisor, provider = make_supervisor(["a", gate, "b"], [asyncio.Event()])

        old = supervisor.submit("A")
        supervisor.apply(await supervisor.read(old))
        supervisor.submit("B")

        with pytest.raises(asyncio.CancelledError):
            await old.task
        assert provider.finished_streams == 1
        assert provider.pulled == 1

        supervisor.shutdown()


class TestFailures:
    """Stream failures surface inline and return to idle."""

    @pytest.mark.asyncio
    async def test_failure_appends_error_entry(self, make_supervisor, drain):
        supervisor, _ = make_supervisor(["part", RuntimeError("quota exceeded")], ["ok"])

        await drain(supervisor, supervisor.submit("q"))

        assert supervisor.state is StreamState.IDLE
        assert supervisor.transcript.lines() == ["? q", "> part", "> error: quota exceeded"]
        assert supervisor.transcript[2].error
        assert _history(supervisor) == [("user", "q"), ("assistant", "part")]

        await drain(supervisor, supervisor.submit("again"))
        assert supervisor.transcript.lines()[-1] == "> ok"

    @pytest.mark.asyncio
    async def test_failure_before_any_fragment(self, make_supervisor, drain):
        supervisor, _ = make_supervisor(TimeoutError("deadline exceeded"))

        await drain(supervisor, supervisor.submit("q"))

        assert supervisor.transcript.lines() == ["? q", "> error: deadline exceeded"]
        assert supervisor.transcript.last_reply() is None


class TestShutdown:

    @pytest.mark.asyncio
    async def test_shutdown_cancels_active_stream(self, scripted):
        gate = asyncio.Event()
        supervisor = StreamSupervisor(ChatSession(scripted([gate, "late"])))

        handle = supervisor.submit("q")
        supervisor.shutdown()

        assert supervisor.state is StreamState.IDLE
        with pytest.raises(asyncio.CancelledError):
            await handle.task

    def test_shutdown_when_idle_is_noop(self, scripted):
        supervisor = StreamSupervisor(ChatSession(scripted()))

        supervisor.shutdown()

        assert supervisor.state is StreamState.IDLE
