"""
Reconciliation Events - In-memory pub/sub for listener reconciliation outcomes.

Each listener reconciliation publishes one event describing what it did to
the live listener, so callers can watch convergence without polling.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Outcomes of a listener reconciliation."""

    CREATED = "CREATED"
    MODIFIED = "MODIFIED"
    UNCHANGED = "UNCHANGED"
    FAILED = "FAILED"


@dataclass
class ListenerEvent:
    """Event emitted after a listener reconciliation pass."""

    event_type: EventType
    load_balancer_arn: str
    port: int
    protocol: str
    listener_arn: Optional[str]
    message: str
    timestamp: str

    def to_json(self) -> str:
        """Serialize the event as a JSON object."""
        return json.dumps(
            {
                "event_type": self.event_type.value,
                "load_balancer_arn": self.load_balancer_arn,
                "port": self.port,
                "protocol": self.protocol,
                "listener_arn": self.listener_arn,
                "message": self.message,
                "timestamp": self.timestamp,
            }
        )

    @classmethod
    def now(
        cls,
        event_type: EventType,
        load_balancer_arn: str,
        port: int,
        protocol: str,
        listener_arn: Optional[str] = None,
        message: str = "",
    ) -> "ListenerEvent":
        """
        Create an event stamped with the current UTC time.

        Args:
            event_type: The reconciliation outcome.
            load_balancer_arn: The load balancer owning the listener.
            port: Listener port.
            protocol: Listener protocol.
            listener_arn: The listener arn, if one exists.
            message: Human-readable detail.

        Returns:
            A new ListenerEvent instance.
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
        return cls(
            event_type=event_type,
            load_balancer_arn=load_balancer_arn,
            port=port,
            protocol=protocol,
            listener_arn=listener_arn,
            message=message,
            timestamp=timestamp,
        )


class EventSubscription:
    """Async iterator over one subscriber's queue; a ``None`` sentinel ends it."""

    def __init__(self, queue: asyncio.Queue):
        self._queue = queue

    def __aiter__(self) -> AsyncIterator["ListenerEvent"]:
        return self

    async def __anext__(self) -> "ListenerEvent":
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event


class EventBus:
    """
    In-memory pub/sub bus for listener events.

    Each subscriber gets its own bounded queue. Publishing never waits: an
    event for a full queue is dropped with a warning.
    """

    def __init__(self, queue_size: int = 256):
        self._queue_size = queue_size
        self._subscribers: Dict[str, asyncio.Queue] = {}

    async def publish(self, event: ListenerEvent) -> None:
        for subscriber_id, queue in list(self._subscribers.items()):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(
                    f"Dropped {event.event_type.value} event for subscriber "
                    f"{subscriber_id}: queue full"
                )

    async def subscribe(self) -> Tuple[str, EventSubscription]:
        """
        Register a subscriber.

        Returns:
            A tuple of ``(subscriber_id, EventSubscription)``.
        """
        subscriber_id = str(uuid.uuid4())
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers[subscriber_id] = queue
        logger.debug(f"New event subscriber: {subscriber_id}")
        return subscriber_id, EventSubscription(queue)

    async def unsubscribe(self, subscriber_id: str) -> None:
        """Remove a subscriber; its iterator ends after the queued events."""
        queue = self._subscribers.pop(subscriber_id, None)
        if queue is None:
            return
        try:
            queue.put_nowait(None)
        except asyncio.QueueFull:
            # Make room for the sentinel so the iterator still terminates.
            queue.get_nowait()
            queue.put_nowait(None)
            logger.warning(
                f"Dropped oldest event while closing subscriber {subscriber_id}"
            )
        logger.debug(f"Unsubscribed: {subscriber_id}")
