"""Unit tests for relaying provider streams."""

import pytest_check as check

from src.models.schemas import CompleteEvent, ConversationMessage, DeltaEvent, ErrorEvent
from src.parsing.ndjson import decode_event
from src.relay.relay import relay_chat, stream_ndjson
from tests.conftest import StubProvider, build_provider_message

MESSAGES = [ConversationMessage(role="user", content="Hi")]


class ScriptedProvider:
    """Provider double yielding a fixed event list and recording closure."""

    def __init__(self, events: list) -> None:
        self.events = events
        self.closed = False

    async def stream_chat(self, messages):
        try:
            for event in self.events:
                yield event
        finally:
            self.closed = True


async def collect(gen) -> list:
    return [item async for item in gen]


class TestRelayChat:
    """Tests for relay_chat guarantees."""

    async def test_deltas_then_complete(self) -> None:
        provider = StubProvider(deltas=["Hel", "lo"])

        events = await collect(relay_chat(provider, MESSAGES))

        check.equal(provider.calls, 1)
        check.equal([e.type for e in events], ["delta", "delta", "complete"])
        check.equal("".join(e.content for e in events[:-1]), events[-1].response.text())

    async def test_provider_receives_conversation(self) -> None:
        provider = StubProvider()

        await collect(relay_chat(provider, MESSAGES))

        assert provider.received == [MESSAGES]

    async def test_provider_failure_becomes_single_error(self) -> None:
        provider = StubProvider(deltas=["par"], error=RuntimeError("upstream exploded"))

        events = await collect(relay_chat(provider, MESSAGES))

        check.equal(events[0], DeltaEvent(content="par"))
        check.equal(events[1:], [ErrorEvent(error="upstream exploded")])

    async def test_blank_exception_message_gets_default(self) -> None:
        provider = StubProvider(deltas=[], error=RuntimeError())

        events = await collect(relay_chat(provider, MESSAGES))

        assert events == [ErrorEvent(error="Failed to generate response")]

    async def test_nothing_after_terminal_event(self) -> None:
        provider = ScriptedProvider(
            [
                DeltaEvent(content="a"),
                CompleteEvent(response=build_provider_message("a")),
                DeltaEvent(content="late"),
            ]
        )

        events = await collect(relay_chat(provider, MESSAGES))

        check.equal([e.type for e in events], ["delta", "complete"])
        check.is_true(provider.closed)

    async def test_stream_without_final_message_ends_with_error(self) -> None:
        provider = ScriptedProvider([DeltaEvent(content="a")])

        events = await collect(relay_chat(provider, MESSAGES))

        check.equal(events[0], DeltaEvent(content="a"))
        check.equal(events[-1], ErrorEvent(error="Provider stream ended without a final message"))

    async def test_closing_relay_closes_provider_stream(self) -> None:
        """A consumer going away stops the provider call."""
        provider = ScriptedProvider([DeltaEvent(content=str(i)) for i in range(10)])

        relay = relay_chat(provider, MESSAGES)
        await anext(relay)
        await relay.aclose()

        assert provider.closed


class TestStreamNdjson:
    """Tests for NDJSON encoding of relayed events."""

    async def test_one_frame_per_event(self) -> None:
        frames = await collect(stream_ndjson(relay_chat(StubProvider(), MESSAGES)))

        check.equal(len(frames), 3)
        check.is_true(all(f.endswith(b"\n") for f in frames))
        check.is_instance(decode_event(frames[-1]), CompleteEvent)

    async def test_stops_after_terminal_event(self) -> None:
        async def events():
            yield ErrorEvent(error="first")
            yield DeltaEvent(content="never")

        frames = await collect(stream_ndjson(events()))

        assert [decode_event(f) for f in frames] == [ErrorEvent(error="first")]
