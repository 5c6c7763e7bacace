"""
Pytest configuration and shared fixtures.
"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator, Callable
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from prometheus_client import CollectorRegistry

from sqsjobs.observability.metrics import MetricsCollector
from sqsjobs.types.job import QueueAttributes, QueueEndpoint, RawMessage
from sqsjobs.worker.main import SqsConsumer

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/409236574440/test-sqsjobs"
PROD_QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/409236574440/jobs-live"

# Short timings so consumption tests run quickly
TEST_WAIT_SECONDS = 0.1
TEST_HEARTBEAT_SECONDS = 0.05


class InMemoryBackend:
    """
    QueueBackend that simulates SQS state in memory.

    Received messages become invisible for `visibility_timeout` seconds and
    each delivery gets a fresh receipt handle; deletes only succeed with the
    current handle. Receives long poll until a message is sent or the wait
    expires.
    """

    def __init__(self, visibility_timeout: float = 30.0):
        self.visibility_timeout = visibility_timeout
        self.messages: dict[str, dict[str, Any]] = {}
        self.deleted: list[str] = []
        self.receive_calls: list[int] = []
        self.events: list[tuple[str, Any]] = []
        self.receives_in_flight = 0
        self.max_receives_in_flight = 0
        self.fail_next_receives = 0
        self.receive_error: Exception | None = None
        self.fail_deletes = False
        self.fail_attributes = False
        self.closed = False
        self.draining = False
        self._condition = asyncio.Condition()

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def visible_count(self) -> int:
        now = time.monotonic()
        return sum(1 for m in self.messages.values() if m["visible_at"] <= now)

    async def wake(self) -> None:
        """Wake up receives that are waiting on an empty queue."""
        async with self._condition:
            self._condition.notify_all()

    async def get_attributes(self, queue_url: str) -> QueueAttributes:
        if self.fail_attributes:
            raise ConnectionError("Could not connect to the endpoint URL")
        return QueueAttributes(approximate_number_of_messages=self.visible_count())

    async def receive(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: float,
    ) -> list[RawMessage]:
        self.receive_calls.append(max_messages)
        self.receives_in_flight += 1
        self.max_receives_in_flight = max(
            self.max_receives_in_flight, self.receives_in_flight
        )
        try:
            if self.fail_next_receives > 0:
                self.fail_next_receives -= 1
                raise RuntimeError("ReceiveMessage failed")

            deadline = time.monotonic() + wait_seconds
            async with self._condition:
                while True:
                    if self.receive_error is not None:
                        raise self.receive_error

                    batch = self._take_visible(max_messages)
                    remaining = deadline - time.monotonic()
                    if batch or remaining <= 0 or self.draining:
                        return batch

                    try:
                        await asyncio.wait_for(self._condition.wait(), remaining)
                    except asyncio.TimeoutError:
                        pass
        finally:
            self.receives_in_flight -= 1

    def _take_visible(self, max_messages: int) -> list[RawMessage]:
        now = time.monotonic()
        batch = []
        for message_id, message in self.messages.items():
            if len(batch) >= max_messages:
                break
            if message["visible_at"] > now:
                continue
            message["receipt_handle"] = f"{message_id}-{uuid4().hex[:8]}"
            message["visible_at"] = now + self.visibility_timeout
            message["receive_count"] += 1
            batch.append(
                RawMessage(
                    message_id=message_id,
                    body=message["body"],
                    receipt_handle=message["receipt_handle"],
                )
            )
        return batch

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        if self.fail_deletes:
            raise RuntimeError("DeleteMessage failed")

        for message_id, message in list(self.messages.items()):
            if message["receipt_handle"] == receipt_handle:
                del self.messages[message_id]
                self.deleted.append(message_id)
                self.events.append(("delete", message["body"]))
                return

    async def send(self, queue_url: str, body: str) -> str:
        message_id = uuid4().hex
        self.messages[message_id] = {
            "body": body,
            "receipt_handle": None,
            "visible_at": 0.0,
            "receive_count": 0,
        }
        await self.wake()
        return message_id

    async def purge(self, queue_url: str) -> None:
        self.messages.clear()

    async def close(self) -> None:
        self.closed = True


async def wait_for(
    predicate: Callable[[], bool],
    timeout: float = 5.0,
    interval: float = 0.01,
) -> None:
    """Poll until predicate() is true or fail the test."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail(f"Condition not met within {timeout}s")
        await asyncio.sleep(interval)


@pytest.fixture
def logger() -> logging.Logger:
    """Logger handed to consumers under test."""
    return logging.getLogger("sqsjobs.test")


@pytest.fixture
def registry() -> CollectorRegistry:
    """A fresh registry per test so counters start at zero."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> MetricsCollector:
    return MetricsCollector(registry)


@pytest.fixture
def endpoint() -> QueueEndpoint:
    return QueueEndpoint.from_url(QUEUE_URL)


@pytest_asyncio.fixture
async def backend() -> InMemoryBackend:
    """In-memory queue backend."""
    return InMemoryBackend()


@pytest_asyncio.fixture
async def make_consumer(
    backend: InMemoryBackend,
    logger: logging.Logger,
    metrics: MetricsCollector,
) -> AsyncGenerator[Callable[..., SqsConsumer]]:
    """
    Factory for consumers wired to the in-memory backend.

    Consumers are disposed, and their outstanding long polls drained,
    after the test.
    """
    consumers: list[SqsConsumer] = []

    def factory(concurrent_ops_limit: int = 1, **kwargs: Any) -> SqsConsumer:
        options: dict[str, Any] = {
            "backend": backend,
            "metrics": metrics,
            "wait_seconds": TEST_WAIT_SECONDS,
            "heartbeat_interval": TEST_HEARTBEAT_SECONDS,
        }
        options.update(kwargs)
        consumer = SqsConsumer(QUEUE_URL, concurrent_ops_limit, logger, **options)
        consumers.append(consumer)
        return consumer

    yield factory

    for consumer in consumers:
        await consumer.dispose()
    backend.draining = True
    await backend.wake()
    for consumer in consumers:
        await wait_for(lambda: consumer.in_flight == 0)
