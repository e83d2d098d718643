"""
Connection registry for the WebSocket channel.

Every connection sits on the global topic. Viewers of one event additionally
join "event:{id}" and leave it explicitly, or implicitly on disconnect.

Publishing runs under a single asyncio lock, so messages reach each
connection in the order they were published. Sends to the targeted
connections run concurrently and each is bounded by send_timeout, so one
stalled viewer costs a publish at most that long. Delivery is best effort
with no replay: a socket that fails or times out is dropped and the viewer
re-fetches state when it reconnects.
"""

import asyncio
import uuid
from typing import Any, Optional, Protocol

from ticketing.core.config import get_settings
from ticketing.core.logging import get_logger
from ticketing.core.metrics import realtime_connections

logger = get_logger(__name__)

GLOBAL_TOPIC = "global"


def event_topic(event_id: int) -> str:
    return f"event:{event_id}"


class Socket(Protocol):
    async def accept(self) -> None: ...

    async def send_json(self, data: Any) -> None: ...


class Connection:
    def __init__(self, websocket: Socket):
        self.id = uuid.uuid4().hex[:8]
        self.websocket = websocket
        self.topics: set[str] = {GLOBAL_TOPIC}

    def __repr__(self) -> str:
        return f"<Connection(id={self.id}, topics={sorted(self.topics)})>"


class ConnectionRegistry:
    def __init__(self, send_timeout: Optional[float] = None):
        self.send_timeout = get_settings().REALTIME_SEND_TIMEOUT if send_timeout is None else send_timeout
        self._connections: dict[str, Connection] = {}
        self._topics: dict[str, set[str]] = {GLOBAL_TOPIC: set()}
        self._publish_lock = asyncio.Lock()

    async def connect(self, websocket: Socket) -> Connection:
        await websocket.accept()
        connection = Connection(websocket)
        self._connections[connection.id] = connection
        self._topics[GLOBAL_TOPIC].add(connection.id)
        realtime_connections.set(len(self._connections))
        logger.info("ws_connected", connection_id=connection.id, total=len(self._connections))
        return connection

    def disconnect(self, connection: Connection) -> None:
        if self._connections.pop(connection.id, None) is None:
            return
        for topic in connection.topics:
            self._unsubscribe(topic, connection.id)
        connection.topics.clear()
        realtime_connections.set(len(self._connections))
        logger.info("ws_disconnected", connection_id=connection.id, total=len(self._connections))

    def join(self, connection: Connection, event_id: int) -> None:
        topic = event_topic(event_id)
        connection.topics.add(topic)
        self._topics.setdefault(topic, set()).add(connection.id)
        logger.info("ws_joined", connection_id=connection.id, topic=topic)

    def leave(self, connection: Connection, event_id: int) -> None:
        topic = event_topic(event_id)
        connection.topics.discard(topic)
        self._unsubscribe(topic, connection.id)
        logger.info("ws_left", connection_id=connection.id, topic=topic)

    def _unsubscribe(self, topic: str, connection_id: str) -> None:
        members = self._topics.get(topic)
        if members is None:
            return
        members.discard(connection_id)
        # The global topic always exists; event topics go away when empty
        if not members and topic != GLOBAL_TOPIC:
            del self._topics[topic]

    def subscribers(self, topic: str) -> set[str]:
        return set(self._topics.get(topic, ()))

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def publish(self, kind: str, data: dict, event_id: Optional[int] = None) -> int:
        """
        Send {"event": kind, "data": data} to every global subscriber, plus
        the subscribers of event_id's topic when given. Each connection gets
        the message at most once. Returns the number of successful sends.
        """
        message = {"event": kind, "data": data}
        async with self._publish_lock:
            targets = self.subscribers(GLOBAL_TOPIC)
            if event_id is not None:
                targets |= self.subscribers(event_topic(event_id))

            connections = [c for c in self._connections.values() if c.id in targets]
            results = await asyncio.gather(*(self._send(c, kind, message) for c in connections))

            for connection, ok in zip(connections, results):
                if not ok:
                    self.disconnect(connection)

        return sum(results)

    async def _send(self, connection: Connection, kind: str, message: dict) -> bool:
        try:
            await asyncio.wait_for(connection.websocket.send_json(message), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning("ws_send_timeout", connection_id=connection.id, kind=kind, timeout=self.send_timeout)
            return False
        except Exception as e:
            logger.warning("ws_send_failed", connection_id=connection.id, kind=kind, error=str(e))
            return False
        return True
