#teamboard/services/notifier.py
"""
In-process publish/subscribe registry for team channels.

A connection is anything with an async ``send_json(message)`` method
(a Starlette ``WebSocket`` in production). Delivery is best-effort and
fire-and-forget: nothing is stored for connections that are offline at
publish time.
"""
import asyncio
import logging
import threading
from typing import Any, Dict, List, Protocol

logger = logging.getLogger("TeamBoard.Realtime")

TASK_CREATED = "task_created"
TASK_UPDATED = "task_updated"
NEW_COMMENT = "new_comment"


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


def channel_name(team_id: Any) -> str:
    return f"team_{team_id}"


class ChannelRegistry:
    """
    Maps team channels to the live connections subscribed to them.

    The subscription map is guarded by a thread lock; each channel has an
    asyncio lock so events reach every subscriber in publish order. A
    channel lock lives while the channel has subscribers or a publish is
    in flight.
    """

    def __init__(self):
        self._channels: Dict[str, Dict[int, Connection]] = {}
        self._lock = threading.Lock()
        self._send_locks: Dict[str, asyncio.Lock] = {}
        # in-flight publish calls per channel
        self._publishers: Dict[str, int] = {}

    def join(self, connection: Connection, team_id: Any) -> None:
        channel = channel_name(team_id)
        with self._lock:
            self._channels.setdefault(channel, {})[id(connection)] = connection
        logger.info(f"Connection {id(connection)} joined {channel}")

    def leave(self, connection: Connection, team_id: Any) -> None:
        channel = channel_name(team_id)
        with self._lock:
            self._discard(channel, connection)
        logger.info(f"Connection {id(connection)} left {channel}")

    def disconnect(self, connection: Connection) -> None:
        """Drop every subscription held by the connection."""
        with self._lock:
            for channel in list(self._channels):
                self._discard(channel, connection)

    def is_subscribed(self, connection: Connection, team_id: Any) -> bool:
        with self._lock:
            return id(connection) in self._channels.get(channel_name(team_id), {})

    def subscribers(self, team_id: Any) -> List[Connection]:
        with self._lock:
            return list(self._channels.get(channel_name(team_id), {}).values())

    def channels_of(self, connection: Connection) -> List[str]:
        with self._lock:
            return [name for name, members in self._channels.items() if id(connection) in members]

    async def publish(self, team_id: Any, event: str, payload: Any) -> int:
        """
        Send ``{"event": event, "data": payload}`` to every subscriber of the team.
        Returns the number of successful deliveries.
        """
        channel = channel_name(team_id)
        message = {"event": event, "data": payload}
        delivered = 0
        lock = self._acquire_send_lock(channel)
        try:
            async with lock:
                for connection in self.subscribers(team_id):
                    try:
                        await connection.send_json(message)
                        delivered += 1
                    except Exception as e:
                        logger.warning(f"Dropping connection {id(connection)} from {channel}: {e}")
                        self.disconnect(connection)
        finally:
            self._release_send_lock(channel)
        logger.debug(f"Published {event} to {channel}: {delivered} recipient(s)")
        return delivered

    def _acquire_send_lock(self, channel: str) -> asyncio.Lock:
        with self._lock:
            lock = self._send_locks.get(channel)
            if lock is None:
                lock = self._send_locks[channel] = asyncio.Lock()
            self._publishers[channel] = self._publishers.get(channel, 0) + 1
            return lock

    def _release_send_lock(self, channel: str) -> None:
        with self._lock:
            remaining = self._publishers.pop(channel, 1) - 1
            if remaining:
                self._publishers[channel] = remaining
            elif channel not in self._channels:
                self._send_locks.pop(channel, None)

    def _discard(self, channel: str, connection: Connection) -> None:
        # caller holds self._lock
        members = self._channels.get(channel)
        if members is None:
            return
        members.pop(id(connection), None)
        if not members:
            del self._channels[channel]
            # a lock still in use by a publisher is dropped when that publisher finishes
            if channel not in self._publishers:
                self._send_locks.pop(channel, None)
