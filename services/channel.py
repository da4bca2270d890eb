"""
Message Channel - Real-time utterance exchange and reply broadcast
==================================================================

This module provides the channel that sits between connected clients
and the response engine. Every inbound utterance produces one reply,
broadcast to all connected clients including the sender.
"""

import asyncio
import inspect
import uuid
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from core.exceptions import ChannelError
from core.logging import get_logger
from rules.engine import ResponseEngine

logger = get_logger("services.channel")

Handler = Callable[[Any, Optional[str]], Union[None, Awaitable[None]]]


def new_connection_id() -> str:
    """Short random id for a new client connection."""
    return uuid.uuid4().hex[:12]


class Connection(Protocol):
    """A client link that can receive JSON frames (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None:
        ...


class MessageChannel:
    """
    Connection registry plus event dispatch.

    Handlers are registered per event name with on(). The channel
    registers its own handler for the inbound utterance event.

    Example:
        channel = MessageChannel(engine)
        connection_id = await channel.connect(websocket)
        await channel.dispatch("message from human", "can you fly?", connection_id)
        await channel.disconnect(connection_id)
    """

    def __init__(
        self,
        engine: ResponseEngine,
        inbound_event: str = "message from human",
        outbound_event: str = "message from robot",
        on_error: str = "default",
        greeting: str = "",
        send_timeout: float = 5.0
    ):
        """
        Initialize the channel.

        Args:
            engine: Engine generating replies
            inbound_event: Event name carrying utterances
            outbound_event: Event name carrying replies
            on_error: "default" broadcasts a fallback reply when generation
                fails, "silent" broadcasts nothing
            greeting: Text sent to each new connection (empty for none)
            send_timeout: Seconds one client may take to accept a frame before
                it is dropped
        """
        if on_error not in ("default", "silent"):
            raise ChannelError(f"Invalid on_error policy: {on_error}")
        if send_timeout <= 0:
            raise ChannelError(f"Invalid send timeout: {send_timeout}")

        self.engine = engine
        self.inbound_event = inbound_event
        self.outbound_event = outbound_event
        self.on_error = on_error
        self.greeting = greeting
        self.send_timeout = send_timeout

        self._connections: Dict[str, Connection] = {}
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

        self.on(inbound_event, self._handle_utterance)

    @classmethod
    def from_config(cls, channel_config, engine: ResponseEngine) -> "MessageChannel":
        """Build a channel from the channel section of the configuration."""
        return cls(
            engine,
            inbound_event=channel_config.inbound_event,
            outbound_event=channel_config.outbound_event,
            on_error=channel_config.on_error,
            greeting=channel_config.greeting,
            send_timeout=channel_config.send_timeout,
        )

    # === Registry ===

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def connection_ids(self) -> List[str]:
        return list(self._connections)

    async def connect(self, connection: Connection, connection_id: Optional[str] = None) -> str:
        """
        Register a connection.

        Args:
            connection: Accepted client link
            connection_id: Identifier to use (generated if omitted)

        Returns:
            The connection id

        Raises:
            ChannelError: If the id is already registered
        """
        connection_id = connection_id or new_connection_id()
        if connection_id in self._connections:
            raise ChannelError("Connection already registered", {"connection": connection_id})

        self._connections[connection_id] = connection
        logger.info(f"Client connected ({self.connection_count} connected)")

        if self.greeting:
            await self.send_to(connection_id, self.outbound_event, self.greeting)

        return connection_id

    async def disconnect(self, connection_id: str) -> bool:
        """
        Remove a connection from the registry.

        Returns:
            True if it was registered
        """
        removed = self._connections.pop(connection_id, None) is not None
        if removed:
            logger.info(f"Client disconnected ({self.connection_count} connected)")
        return removed

    # === Events ===

    def on(self, event: str, handler: Handler) -> None:
        """
        Register a handler for an event.

        Args:
            event: Event name
            handler: Called with (payload, connection_id); may be async
        """
        self._handlers[event].append(handler)

    async def dispatch(self, event: str, payload: Any, connection_id: Optional[str] = None) -> int:
        """
        Invoke every handler registered for an event.

        A failing handler is logged and does not stop the others.

        Returns:
            Number of handlers invoked
        """
        handlers = self._handlers.get(event)
        if not handlers:
            logger.warning(f"Ignoring unknown event '{event}'")
            return 0

        for handler in list(handlers):
            try:
                result = handler(payload, connection_id)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Handler for '{event}' failed: {e}", exc_info=True)

        return len(handlers)

    async def _handle_utterance(self, payload: Any, connection_id: Optional[str]) -> None:
        await self.on_utterance_received(payload)

    async def on_utterance_received(self, utterance: Any) -> Optional[str]:
        """
        Generate a reply and broadcast it to every connection.

        Args:
            utterance: Inbound text

        Returns:
            The broadcast reply, or None if nothing was broadcast
        """
        logger.info(f"Got a human message: {utterance!r}")

        try:
            reply = self.engine.respond(utterance)
        except Exception as e:
            logger.error(f"Reply generation failed: {e}", exc_info=True)
            reply = self._error_reply()

        if reply is None:
            return None

        await self.broadcast(self.outbound_event, reply)
        return reply

    def _error_reply(self) -> Optional[str]:
        if self.on_error == "silent":
            return None
        try:
            return self.engine.fallback.generate(self.engine.chooser)
        except Exception as e:
            logger.error(f"Fallback reply failed: {e}", exc_info=True)
            return None

    # === Delivery ===

    async def send_to(self, connection_id: str, event: str, data: Any) -> bool:
        """
        Send one frame to one connection.

        A connection that fails to receive, or does not accept the frame
        within send_timeout seconds, is dropped from the registry.

        Returns:
            True if delivered
        """
        if connection_id not in self._connections:
            return False

        frame = {"event": event, "data": data}
        try:
            return await asyncio.wait_for(self._deliver(connection_id, frame), self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Dropping stalled client {connection_id}: no delivery within {self.send_timeout}s")
            self._connections.pop(connection_id, None)
            return False

    async def _deliver(self, connection_id: str, frame: Dict[str, Any]) -> bool:
        connection = self._connections.get(connection_id)
        if connection is None:
            return False

        try:
            await connection.send_json(frame)
        except Exception as e:
            logger.warning(f"Dropping unreachable client {connection_id}: {e}")
            self._connections.pop(connection_id, None)
            return False

        return True

    async def broadcast(self, event: str, data: Any) -> int:
        """
        Send a frame to every connected client.

        Works on a snapshot of the registry, so clients leaving during
        the broadcast are skipped rather than raising. Sends run
        concurrently; a slow client delays no one past send_timeout.

        Returns:
            Number of successful deliveries
        """
        results = await asyncio.gather(*(
            self.send_to(connection_id, event, data)
            for connection_id in list(self._connections)
        ))
        delivered = sum(1 for ok in results if ok)

        logger.debug(f"Broadcast '{event}' to {delivered} client(s)")
        return delivered
