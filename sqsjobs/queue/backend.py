"""
Queue backend interface.

The consumer only talks to the queue through this interface, so tests can
swap in an in-memory backend and alternative transports can be plugged in.
"""

from typing import Protocol

from sqsjobs.types.job import QueueAttributes, RawMessage


class QueueBackend(Protocol):
    """Operations the consumer needs from a message queue service."""

    async def get_attributes(self, queue_url: str) -> QueueAttributes:
        """Fetch queue attributes; used on init to confirm connectivity."""
        ...

    async def receive(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: int,
    ) -> list[RawMessage]:
        """Long poll for up to max_messages. May return an empty list."""
        ...

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        """Acknowledge one delivery."""
        ...

    async def send(self, queue_url: str, body: str) -> str:
        """Enqueue a message body, returning the message id."""
        ...

    async def purge(self, queue_url: str) -> None:
        """Delete every message in the queue."""
        ...

    async def close(self) -> None:
        """Release client resources. In-flight calls are allowed to finish."""
        ...
