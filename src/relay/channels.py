"""Per-channel broadcast of relayed stream events.

A channel correlates one send request with any number of subscribers. The
request's producer task is the only writer; every subscriber receives every
event (broadcast), including the ones published before it subscribed.

Lifecycle:
    - created on first publish or first subscribe
    - removed CHANNEL_TTL seconds after completion
    - removed immediately after an error; its error event is still answered
      to late subscribers for CHANNEL_TTL seconds
    - removed CHANNEL_TTL seconds after creation if no producer ever starts
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing

from src.models.schemas import ErrorEvent, StreamEvent, is_terminal

logger = logging.getLogger(__name__)

CHANNEL_TTL = 60.0


class ChannelBusyError(RuntimeError):
    """Raised when a channel already has a running producer."""


class Channel:
    """Replayable broadcast source for one logical response stream."""

    def __init__(self, channel_id: str) -> None:
        self.channel_id = channel_id
        self.history: list[StreamEvent] = []
        self.finished = False
        self.producer: asyncio.Task[None] | None = None
        self._subscribers: set[asyncio.Queue[StreamEvent | None]] = set()

    @property
    def busy(self) -> bool:
        return self.producer is not None and not self.producer.done()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: StreamEvent) -> None:
        if self.finished:
            raise RuntimeError(f"Channel {self.channel_id} is already finished")
        self.history.append(event)
        for queue in self._subscribers:
            queue.put_nowait(event)
        if is_terminal(event):
            self.finished = True

    def close(self) -> None:
        """Finish the channel and release every subscriber."""
        self.finished = True
        for queue in self._subscribers:
            queue.put_nowait(None)
        self._subscribers.clear()

    async def subscribe(self) -> AsyncGenerator[StreamEvent]:
        """Yield past events, then live ones, up to and including the terminal event."""
        queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        for event in self.history:
            queue.put_nowait(event)
        if self.finished:
            queue.put_nowait(None)
        else:
            self._subscribers.add(queue)

        try:
            while True:
                event = await queue.get()
                if event is None:
                    return
                yield event
                if is_terminal(event):
                    return
        finally:
            self._subscribers.discard(queue)


class ChannelRegistry:
    """Owns every live channel of the process.

    Created by the application factory and handed to request handlers
    through dependencies.
    """

    def __init__(self, ttl: float = CHANNEL_TTL) -> None:
        self._ttl = ttl
        self._channels: dict[str, Channel] = {}
        self._expiry: dict[str, asyncio.TimerHandle] = {}
        self._failures: dict[str, ErrorEvent] = {}
        self._failure_expiry: dict[str, asyncio.TimerHandle] = {}

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._channels

    def get(self, channel_id: str) -> Channel | None:
        return self._channels.get(channel_id)

    def get_or_create(self, channel_id: str) -> Channel:
        channel = self._channels.get(channel_id)
        if channel is None:
            logger.info(f"Creating channel {channel_id}")
            channel = Channel(channel_id)
            self._channels[channel_id] = channel
            self._schedule_expiry(channel)
        return channel

    def start(self, channel_id: str, events: AsyncGenerator[StreamEvent]) -> Channel:
        """Publish `events` on a channel from a background task.

        A finished channel with the same id is replaced by a fresh one.

        Raises:
            ChannelBusyError: If the channel already has a running producer.
        """
        channel = self._channels.get(channel_id)
        if channel is not None and channel.busy:
            raise ChannelBusyError(f"Channel {channel_id} is already streaming")
        if channel is not None and channel.finished:
            self.remove(channel_id)
        self._forget_failure(channel_id)
        channel = self.get_or_create(channel_id)

        self._cancel_expiry(channel_id)
        channel.producer = asyncio.create_task(
            self._produce(channel, events), name=f"channel-{channel_id}"
        )
        return channel

    async def _produce(self, channel: Channel, events: AsyncGenerator[StreamEvent]) -> None:
        last: StreamEvent | None = None
        try:
            async with aclosing(events):
                async for event in events:
                    channel.publish(event)
                    last = event
                    if is_terminal(event):
                        break
        except Exception as e:
            logger.exception(f"Producer for channel {channel.channel_id} failed")
            last = ErrorEvent(error=str(e) or "Channel producer failed")
            if not channel.finished:
                channel.publish(last)
        else:
            if (last is None or not is_terminal(last)) and not channel.finished:
                last = ErrorEvent(error="Channel producer ended without a final event")
                channel.publish(last)

        if isinstance(last, ErrorEvent):
            if self._channels.get(channel.channel_id) is channel:
                self.remove(channel.channel_id, channel)
                self._remember_failure(channel.channel_id, last)
        else:
            self._schedule_expiry(channel)

    def remove(self, channel_id: str, channel: Channel | None = None) -> None:
        """Drop a channel; when `channel` is given, only if it is still the registered one."""
        current = self._channels.get(channel_id)
        if current is None or (channel is not None and current is not channel):
            return
        logger.info(f"Cleaning up channel {channel_id}")
        self._cancel_expiry(channel_id)
        del self._channels[channel_id]
        current.close()

    async def subscribe(self, channel_id: str) -> AsyncGenerator[StreamEvent]:
        """Yield a channel's events, creating the channel if needed.

        A channel removed after an error keeps answering with that error
        until CHANNEL_TTL runs out or a new producer starts on its id.
        """
        failure = self._failures.get(channel_id)
        if failure is not None and channel_id not in self._channels:
            yield failure
            return

        async with aclosing(self.get_or_create(channel_id).subscribe()) as events:
            async for event in events:
                yield event

    def _remember_failure(self, channel_id: str, error: ErrorEvent) -> None:
        self._forget_failure(channel_id)
        self._failures[channel_id] = error
        loop = asyncio.get_running_loop()
        self._failure_expiry[channel_id] = loop.call_later(
            self._ttl, self._forget_failure, channel_id
        )

    def _forget_failure(self, channel_id: str) -> None:
        self._failures.pop(channel_id, None)
        handle = self._failure_expiry.pop(channel_id, None)
        if handle is not None:
            handle.cancel()

    def _schedule_expiry(self, channel: Channel) -> None:
        self._cancel_expiry(channel.channel_id)
        loop = asyncio.get_running_loop()
        self._expiry[channel.channel_id] = loop.call_later(self._ttl, self._expire, channel)

    def _cancel_expiry(self, channel_id: str) -> None:
        handle = self._expiry.pop(channel_id, None)
        if handle is not None:
            handle.cancel()

    def _expire(self, channel: Channel) -> None:
        self._expiry.pop(channel.channel_id, None)
        if channel.busy:
            return
        self.remove(channel.channel_id, channel)

    async def aclose(self) -> None:
        """Cancel running producers and drop every channel."""
        producers = [c.producer for c in self._channels.values() if c.busy]
        for task in producers:
            task.cancel()
        await asyncio.gather(*producers, return_exceptions=True)
        for channel_id in list(self._channels):
            self.remove(channel_id)
        for channel_id in list(self._failures):
            self._forget_failure(channel_id)
